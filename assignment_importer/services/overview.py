from __future__ import annotations

from dataclasses import dataclass, field

from ..db.store import AssignmentStore
from ..models.entities import Assignment, Project, User

"""Coordinator project overview (what the dashboard lists after an import)."""


@dataclass(frozen=True)
class ProjectOverview:
    project: Project
    assignment: Assignment | None
    mentee_profiles: list[User] = field(default_factory=list)
    mentor_display_name: str | None = None
    mentor_contact_email: str | None = None


def coordinator_projects(store: AssignmentStore, coordinator_id: str) -> list[ProjectOverview]:
    """Projects assigned by coordinator_id, hydrated with user profiles.

    Mentor name / e-mail fall back profile -> assignment snapshot -> project.
    Mentee ids without a profile are left out of mentee_profiles.
    """
    projects = store.list_projects(coordinator_id)
    if not projects:
        return []

    user_ids: list[str] = []
    for p in projects:
        user_ids.extend(p.mentees)
        if p.mentor_id:
            user_ids.append(p.mentor_id)
    users = {u.id: u for u in store.find_users_by_ids(list(dict.fromkeys(user_ids)))}

    result = []
    for p in projects:
        assignment = store.find_assignment(p.id)
        mentor = users.get(p.mentor_id) if p.mentor_id else None
        result.append(
            ProjectOverview(
                project=p,
                assignment=assignment,
                mentee_profiles=[users[m] for m in p.mentees if m in users],
                mentor_display_name=(mentor.name if mentor else None)
                or (assignment.mentor_name if assignment else None)
                or None,
                mentor_contact_email=(mentor.email if mentor else None)
                or (assignment.mentor_email if assignment else None)
                or p.mentor_email
                or None,
            )
        )
    return result
