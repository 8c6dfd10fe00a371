"""Domain errors raised by the auth and storage layers.

Handlers in :mod:`recipe_api.main` translate these into HTTP statuses; the
core itself never maps them and never retries.
"""
from typing import Optional


class RecipeAPIError(Exception):
    """Base class for all service errors"""


class NotFoundError(RecipeAPIError):
    """Requested record does not exist"""


class RecipeNotFoundError(NotFoundError):
    def __init__(self, recipe_id: str):
        self.recipe_id = recipe_id
        super().__init__(f"Recipe with ID {recipe_id} not found")


class UserNotFoundError(NotFoundError):
    def __init__(self, lookup: str):
        self.lookup = lookup
        super().__init__(f"User {lookup} not found")


class InvalidCredentialsError(RecipeAPIError):
    """Password did not match the stored hash"""

    def __init__(self, message: str = "Invalid credentials"):
        super().__init__(message)


class RecipeValidationError(RecipeAPIError):
    """Malformed recipe input, rejected before any storage access"""

    def __init__(self, message: str, field: Optional[str] = None):
        self.field = field
        super().__init__(message)


class StorageUnavailableError(RecipeAPIError):
    """Backing file or database could not be read or written"""

    def __init__(self, message: str, backend: Optional[str] = None):
        self.backend = backend
        super().__init__(message)


class DuplicateUserError(RecipeAPIError):
    def __init__(self, username: str):
        self.username = username
        super().__init__(f"Username {username} already exists")
