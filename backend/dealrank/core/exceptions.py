"""Custom exception classes for the application."""


class DealRankException(Exception):
    """Base exception for all dealrank errors."""

    def __init__(self, message: str = "An unexpected error occurred"):
        self.message = message
        super().__init__(self.message)


class NotFoundError(DealRankException):
    """Raised when a requested resource is not found."""

    def __init__(self, resource: str, identifier: str):
        self.resource = resource
        self.identifier = identifier
        super().__init__(f"{resource} with identifier '{identifier}' not found")


class InvalidFilterError(DealRankException):
    """Raised when filter bounds can never be satisfied (e.g. min_price > max_price)."""

    def __init__(self, field: str, lower: float, upper: float):
        self.field = field
        super().__init__(f"Invalid {field} range: {lower} > {upper}")


class DatastoreUnavailableError(DealRankException):
    """Raised when the datastore cannot be reached or fails mid-operation."""

    def __init__(self, operation: str, message: str):
        self.operation = operation
        super().__init__(f"Datastore unavailable during {operation}: {message}")


class ConcurrentModificationError(DealRankException):
    """Raised when a unique constraint reveals a concurrent write for the same row."""

    def __init__(self, resource: str, identifier: str):
        super().__init__(f"{resource} '{identifier}' was modified concurrently")
