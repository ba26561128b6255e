from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field

from ..db.store import AssignmentStore
from ..models.entities import Assignment, AssignmentMentee, Project
from .validator import is_valid_email

"""Single-project assignment submitted from the coordinator form.

Unlike the bulk import this always creates a new project and records the
project duration. Mentees without an account are linked by e-mail and
reported back as pending.
"""

__all__ = [
    "ALLOWED_DURATIONS",
    "AssignmentRequestError",
    "MenteeEntry",
    "AssignmentRequest",
    "AssignmentOutcome",
    "assign_project",
]

logger = logging.getLogger(__name__)

ALLOWED_DURATIONS: tuple[str, ...] = ("1 Semester", "2 Semesters", "3 Semesters")


class AssignmentRequestError(Exception):
    """Raised when the form input is incomplete or invalid (nothing written)."""


@dataclass(frozen=True)
class MenteeEntry:
    name: str
    email: str


@dataclass(frozen=True)
class AssignmentRequest:
    project_name: str
    project_details: str
    mentor_name: str
    mentor_email: str
    mentees: Sequence[MenteeEntry]
    duration: str = "1 Semester"


@dataclass(frozen=True)
class AssignmentOutcome:
    project: Project
    assignment: Assignment
    mentee_links: list[AssignmentMentee] = field(default_factory=list)
    pending_mentee_emails: list[str] = field(default_factory=list)

    @property
    def message(self) -> str:
        if self.pending_mentee_emails:
            return f"Project assigned. Pending mentee accounts: {', '.join(self.pending_mentee_emails)}"
        return "Project assigned successfully!"


def _clean_request(request: AssignmentRequest) -> tuple[AssignmentRequest, list[MenteeEntry]]:
    cleaned = AssignmentRequest(
        project_name=request.project_name.strip(),
        project_details=request.project_details.strip(),
        mentor_name=request.mentor_name.strip(),
        mentor_email=request.mentor_email.strip().lower(),
        mentees=(),
        duration=request.duration,
    )
    if not (cleaned.project_name and cleaned.project_details and cleaned.mentor_name and cleaned.mentor_email):
        raise AssignmentRequestError("Please complete all required fields before assigning the project")
    if cleaned.duration not in ALLOWED_DURATIONS:
        raise AssignmentRequestError("Please select a valid project duration")
    if not is_valid_email(cleaned.mentor_email):
        raise AssignmentRequestError("Please enter a valid mentor email address")

    mentees = [
        MenteeEntry(name=m.name.strip(), email=m.email.strip().lower())
        for m in request.mentees
        if m.email.strip()
    ]
    if not mentees:
        raise AssignmentRequestError("Please add at least one mentee with a valid email address")
    for m in mentees:
        if not is_valid_email(m.email):
            raise AssignmentRequestError(f"Invalid mentee email: {m.email}")
    return cleaned, mentees


def assign_project(store: AssignmentStore, coordinator_id: str, request: AssignmentRequest) -> AssignmentOutcome:
    """Create a project, its assignment and mentee links from one form submission.

    Raises:
        AssignmentRequestError: invalid input or missing coordinator id
        StoreError: a store call failed (records written before it are kept)
    """
    if not coordinator_id:
        raise AssignmentRequestError("Unable to determine the current coordinator")
    req, mentees = _clean_request(request)

    mentor = store.find_user_by_email(req.mentor_email)
    unique_emails = list(dict.fromkeys(m.email for m in mentees))
    profiles = {u.email.lower(): u for u in store.find_users_by_emails(unique_emails)}

    resolved: list[tuple[str | None, str, str]] = []  # (id, name, email)
    for entry in mentees:
        profile = profiles.get(entry.email)
        if profile is not None:
            name = entry.name or profile.name or profile.email.split("@")[0]
            resolved.append((profile.id, name, profile.email.lower()))
        else:
            resolved.append((None, entry.name or entry.email.split("@")[0], entry.email))

    existing_ids = list(dict.fromkeys(mid for mid, _, _ in resolved if mid))
    project = store.create_project(
        project_name=req.project_name,
        project_details=req.project_details,
        mentor_id=mentor.id if mentor else None,
        mentor_email=req.mentor_email,
        mentees=existing_ids,
        assigned_by=coordinator_id,
    )
    assignment = store.upsert_assignment(
        project_id=project.id,
        project_name=req.project_name,
        mentor_id=mentor.id if mentor else None,
        mentor_name=mentor.name if mentor and mentor.name else req.mentor_name,
        mentor_email=req.mentor_email,
        created_by=coordinator_id,
        status="pending",
        duration=req.duration,
    )
    links = [
        store.upsert_assignment_mentee(
            assignment_id=assignment.id, mentee_id=mid, mentee_name=name, mentee_email=email
        )
        for mid, name, email in resolved
    ]

    pending = list(dict.fromkeys(email for mid, _, email in resolved if mid is None))
    logger.info(
        "assigned project=%s mentees=%d pending=%d", project.id, len(links), len(pending)
    )
    return AssignmentOutcome(project=project, assignment=assignment, mentee_links=links, pending_mentee_emails=pending)
