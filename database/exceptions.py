"""Database exceptions shared by the storage managers."""


class DatabaseError(Exception):
    """Base exception for database operations."""
    pass


class DatabaseSchemaError(DatabaseError):
    """Raised when schema loading or migration fails."""
    pass


class RecordNotFoundError(DatabaseError, LookupError):
    """Raised when a referenced record does not exist."""
    pass
