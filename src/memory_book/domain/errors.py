"""Domain exceptions shared by services and the API layer."""


class MemoryBookError(Exception):
    """Base exception for memory book errors."""


class ValidationError(MemoryBookError):
    """Raised when a request is invalid for the current state."""


class NotFoundError(MemoryBookError):
    """Raised when an entity is unknown or not owned by the caller."""


class ConflictError(MemoryBookError):
    """Raised when a concurrent or repeated transition loses the race."""


class UpstreamUnavailable(MemoryBookError):
    """Raised when an AI collaborator fails or times out."""


class StorageError(MemoryBookError):
    """Raised when the object storage collaborator fails."""
