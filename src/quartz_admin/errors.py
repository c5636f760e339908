"""Exception taxonomy shared by the CLI and the API."""

from __future__ import annotations

from typing import Any


class QuartzAdminError(Exception):
    """Base class for every error this tool reports to its callers."""


class DataAccessError(QuartzAdminError):
    """A database operation failed; ``cause`` holds the driver-level exception."""

    def __init__(self, message: str, cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.cause = cause


class ConnectionFailure(DataAccessError):
    """The database could not be reached."""


class QueryFailure(DataAccessError):
    """A statement was rejected or failed while executing."""


class AmbiguousResult(QuartzAdminError):
    """More than one row matched where exactly one was required."""

    def __init__(self, kind: str, matches: list[dict[str, Any]]) -> None:
        super().__init__(f"{len(matches)} {kind}s match; pass force to act on all of them")
        self.kind = kind
        self.matches = matches


class UserCancelled(QuartzAdminError):
    """An interactive confirmation was declined."""

    def __init__(self, message: str = "Operation cancelled.") -> None:
        super().__init__(message)
