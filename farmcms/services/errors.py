"""Errors raised while keeping media references consistent."""


class ReconciliationError(Exception):
    """Base class for media-reference cleanup failures."""


class MalformedStoredValue(ReconciliationError, ValueError):
    """A stored list or JSON field matches none of the known encodings."""


class EntityNotFound(ReconciliationError):
    """The referenced record no longer exists."""


class BlobStoreUnavailable(ReconciliationError):
    """The object store could not complete a request."""


class AmbiguousLinkage(ReconciliationError):
    """A URL is referenced by more than one record of the same kind."""


__all__ = [
    'ReconciliationError',
    'MalformedStoredValue',
    'EntityNotFound',
    'BlobStoreUnavailable',
    'AmbiguousLinkage',
]
