"""Import pipeline services."""

from .orchestrator import ProcessingError, ValidationAbortedError, import_file, run_import

__all__ = [
    "ProcessingError",
    "ValidationAbortedError",
    "import_file",
    "run_import",
]
