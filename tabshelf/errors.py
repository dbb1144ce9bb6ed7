"""Exception hierarchy for tabshelf.

Every error derives from :class:`ShelfError` and, where one fits, from the
closest builtin so callers may catch ``ValueError``/``LookupError`` too.
"""

from __future__ import annotations


class ShelfError(Exception):
    """Base class for all tabshelf errors."""


# -- validation ---------------------------------------------------------------


class InvalidTabError(ShelfError, ValueError):
    """A tab (or candidate tab) failed validation."""


class InvalidLabelError(InvalidTabError):
    pass


class InvalidUrlError(InvalidTabError):
    pass


class InvalidOrgError(InvalidTabError):
    pass


class InvalidClickCountError(InvalidTabError):
    pass


class InvalidClickDateError(InvalidTabError):
    pass


class UnexpectedKeyError(InvalidTabError):
    """A record contains a key outside the allowed set."""


class InvalidSortKeyError(UnexpectedKeyError):
    """A sort was requested on a field that is not a sort key."""


class DuplicateTabError(ShelfError, ValueError):
    """A tab with the same url and org is already saved."""


class NoQueryDataError(ShelfError, ValueError):
    """A query carried no label, url or org to match on."""


# -- lookup -------------------------------------------------------------------


class TabNotFoundError(ShelfError, LookupError):
    pass


class AmbiguousTabError(ShelfError, LookupError):
    """More than one tab matched where exactly one was required."""


# -- structure ----------------------------------------------------------------


class MoveError(ShelfError):
    """Base class for rejected moves."""


class CannotMoveError(MoveError):
    """The tab is already at the edge of its partition."""


class AlreadyPinnedError(MoveError):
    pass


class AlreadyUnpinnedError(MoveError):
    pass


class EmptyPartitionError(ShelfError):
    """The pinned (or unpinned) partition targeted for removal is empty."""


# -- I/O ----------------------------------------------------------------------


class PersistenceError(ShelfError, RuntimeError):
    """The storage port rejected a write."""

    def __init__(self, message: str, cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.cause = cause


class MalformedImportError(ShelfError, ValueError):
    """An import document is not valid JSON or has the wrong shape."""


class NotInitializedError(ShelfError, RuntimeError):
    """The shelf was used before ``initialize()``."""
