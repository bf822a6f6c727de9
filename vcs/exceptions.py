"""Version-control exceptions."""


class RepositoryUnavailableError(Exception):
    """Raised when the working directory is not a usable git repository.

    Covers a missing git binary, a path outside any repository, and a git
    query that fails.
    """

    pass
