"""Custom exceptions for the service layer.

Callers translate these into user-facing errors. ``StoreReadError`` and
``StoreWriteError`` should be treated as opaque internal failures.
"""


class ServiceError(Exception):
    """Base class for every failure raised by the service layer."""


class NotFoundError(ServiceError):
    """Raised when the requested entity does not exist."""

    def __init__(self, entity: str, key: object) -> None:
        """Create the error for a missing entity.

        :param entity: Human readable entity name, e.g. ``"user"``
        :param key: The identifier or lookup value that matched nothing
        """
        super().__init__(f"{entity} {key} not found")
        self.entity = entity
        self.key = key


class DuplicateKeyError(ServiceError):
    """Raised when a unique constraint would be violated (e.g. login)."""


class InvalidArgumentError(ServiceError):
    """Raised for malformed enum values or identifiers."""


class StoreReadError(ServiceError):
    """Raised when the document store fails to answer a read."""


class StoreWriteError(ServiceError):
    """Raised when the document store fails to apply a write."""


class HashingError(ServiceError):
    """Raised when a password hash could not be computed."""


class PublishError(ServiceError):
    """Raised when a change event could not be published.

    Never escapes a business operation; the notification engine logs it.
    """


class ObjectStoreError(ServiceError):
    """Raised when the blob store rejects or fails a request."""
