"""Exit codes shared by CLI commands."""

SYSTEM_EXIT_CODE = 1
VALIDATION_EXIT_CODE = 10
UPSTREAM_EXIT_CODE = 20
COLLECTION_FAILED_EXIT_CODE = 30
NOT_FOUND_EXIT_CODE = 40

__all__ = [
    "COLLECTION_FAILED_EXIT_CODE",
    "NOT_FOUND_EXIT_CODE",
    "SYSTEM_EXIT_CODE",
    "UPSTREAM_EXIT_CODE",
    "VALIDATION_EXIT_CODE",
]
