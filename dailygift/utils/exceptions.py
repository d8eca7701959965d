"""Domain exceptions shared by services and routers."""
from sqlalchemy.exc import InterfaceError, OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError

# Failures that mean the store could not be reached or did not answer in time
STORE_ERRORS = (OperationalError, InterfaceError, PoolTimeoutError, TimeoutError)


class StoreUnavailableError(RuntimeError):
    """Raised when the database cannot be reached or times out."""


class UserNotFoundError(RuntimeError):
    """Raised when an operation references a user that does not exist."""


class GiftCatalogError(RuntimeError):
    """Raised when the gift catalog is misconfigured."""
