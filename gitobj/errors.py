__all__ = [
    "GitError",
    "ObjectNotFoundError",
    "AmbiguousHashError",
    "InvalidHashError",
    "UnknownTypeError",
    "MalformedHeaderError",
    "MalformedTreeError",
    "HeaderOrderError",
    "TruncatedError",
    "UnsupportedError",
    "NotARepositoryError",
]


class GitError(Exception):
    """Base class for every error raised by gitobj."""


class ObjectNotFoundError(GitError, LookupError):
    def __init__(self, hash_value: str):
        super().__init__(f"object {hash_value} does not exist")
        self.hash = hash_value


class AmbiguousHashError(GitError, LookupError):
    def __init__(self, hash_value: str, candidates: list[str]):
        super().__init__(
            f"ambiguous hash {hash_value}: {', '.join(sorted(candidates))}"
        )
        self.hash = hash_value
        self.candidates = candidates


class InvalidHashError(GitError, ValueError):
    pass


class UnknownTypeError(GitError, ValueError):
    pass


class MalformedHeaderError(GitError, ValueError):
    pass


class MalformedTreeError(MalformedHeaderError):
    pass


class HeaderOrderError(GitError, RuntimeError):
    pass


class TruncatedError(GitError, EOFError):
    pass


class UnsupportedError(GitError, NotImplementedError):
    pass


class NotARepositoryError(GitError):
    pass
