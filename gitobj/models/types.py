import hashlib
from enum import StrEnum, auto

from gitobj.errors import UnknownTypeError

__all__ = ["GitObject", "object_hash", "HASH_SIZE", "HEX_HASH_SIZE"]

HASH_SIZE = 20
HEX_HASH_SIZE = 40


class GitObject(StrEnum):
    BLOB = auto()
    TREE = auto()
    COMMIT = auto()

    @property
    def mode(self) -> str:
        """Mode used for this kind in a pretty tree line."""
        match self:
            case GitObject.BLOB:
                return "100644"
            case GitObject.TREE:
                return "040000"
            case _:
                raise ValueError(f"{self} objects have no tree mode")

    def header(self, length: int) -> bytes:
        """Framing header ``<type> <length>\\0`` for a payload of ``length`` bytes."""
        return f"{self} {length}\x00".encode()

    @classmethod
    def parse(cls, token: bytes | str) -> "GitObject":
        if isinstance(token, bytes):
            token = token.decode("ascii", errors="replace")
        try:
            return cls(token)
        except ValueError:
            raise UnknownTypeError(f"unknown object type {token!r}") from None

    @classmethod
    def from_mode(cls, mode: bytes) -> "GitObject | None":
        """Kind that a tree entry mode renders as, or None for an unknown mode."""
        match mode[:1]:
            case b"1":
                return cls.BLOB
            case b"4":
                return cls.TREE
            case _:
                return None


def object_hash(git_object: GitObject, data: bytes, *, hasher=hashlib.sha1) -> str:
    """Hex digest of ``data`` framed as a ``git_object``."""
    return hasher(git_object.header(len(data)) + data).hexdigest()
