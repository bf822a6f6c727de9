"""Read-only version-control queries used by the capture engine."""

from .exceptions import RepositoryUnavailableError
from .repository import NULL_OBJECT_ID, GitRepository

__all__ = ["GitRepository", "NULL_OBJECT_ID", "RepositoryUnavailableError"]
