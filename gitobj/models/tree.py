"""Tree entry transcoding.

A tree object stores its entries in a compact binary form::

    <mode> <name>\\0<20 raw hash bytes>

while ``cat-file -p`` and ``mktree`` speak the pretty form::

    <mode> <type> <40 hex hash>\\t<name>\\n

:class:`TreeEncoder` turns pretty lines into binary entries and
:class:`TreeDecoder` does the reverse. Both accept input in chunks of any
size and keep the unconsumed tail of a split entry until the next chunk.
Entries are passed through in the order they arrive.
"""
import binascii
import re
from dataclasses import dataclass
from typing import Iterator

from loguru import logger

from gitobj.errors import MalformedTreeError, TruncatedError
from gitobj.models.types import HASH_SIZE, HEX_HASH_SIZE, GitObject

__all__ = ["TreeEntry", "TreeEncoder", "TreeDecoder", "parse_tree"]

NULL_BYTE = b"\x00"

PRETTY_LINE = re.compile(
    rb"""
    (?P<mode>\d+)
    \x20
    (?P<type>[a-z]+)
    \x20
    (?P<hash>[^\t]*)
    \t
    (?P<file_name>[^\x00]+)
    """,
    re.VERBOSE,
)


@dataclass(frozen=True, kw_only=True)
class TreeEntry:
    mode: bytes
    file_name: bytes
    raw_hash: bytes

    @property
    def hash(self) -> str:
        return binascii.hexlify(self.raw_hash).decode()

    @property
    def git_object(self) -> GitObject:
        git_object = GitObject.from_mode(self.mode)
        if git_object is None:
            raise MalformedTreeError(f"unrecognized mode {self.mode!r}")
        return git_object

    def to_bytes(self) -> bytes:
        return self.mode + b" " + self.file_name + NULL_BYTE + self.raw_hash

    def to_pretty(self) -> bytes:
        git_object = self.git_object
        mode = self.mode
        # binary trees store directory modes without the display padding
        if git_object is GitObject.TREE:
            mode = b"0" + mode
        return b"%s %s %s\t%s\n" % (
            mode,
            git_object.encode(),
            self.hash.encode(),
            self.file_name,
        )

    @classmethod
    def from_pretty(cls, line: bytes) -> "TreeEntry":
        """Parse one pretty line, without its trailing newline."""
        match = PRETTY_LINE.fullmatch(line)
        if match is None:
            raise MalformedTreeError(f"malformed tree line {line!r}")
        mode = match["mode"]
        if mode.startswith(b"0"):
            mode = mode[1:]
        if not mode or GitObject.from_mode(mode) is None:
            raise MalformedTreeError(f"unrecognized mode {match['mode']!r} in tree line")
        hex_hash = match["hash"]
        if len(hex_hash) != HEX_HASH_SIZE:
            raise MalformedTreeError(f"invalid hash {hex_hash!r} in tree line")
        try:
            raw_hash = binascii.unhexlify(hex_hash)
        except binascii.Error:
            raise MalformedTreeError(f"invalid hash {hex_hash!r} in tree line") from None
        return cls(mode=mode, file_name=match["file_name"], raw_hash=raw_hash)


class TreeEncoder:
    """Pretty tree lines in, binary tree entries out."""

    def __init__(self):
        self._pending = bytearray()
        self.entries = 0

    @property
    def pending(self) -> int:
        return len(self._pending)

    def feed(self, data: bytes) -> bytes:
        self._pending += data
        out = bytearray()
        start = 0
        while (end := self._pending.find(b"\n", start)) != -1:
            entry = TreeEntry.from_pretty(bytes(self._pending[start:end]))
            out += entry.to_bytes()
            self.entries += 1
            start = end + 1
        del self._pending[:start]
        return bytes(out)

    def close(self) -> None:
        if self._pending:
            raise TruncatedError(
                f"tree input ended inside a line ({len(self._pending)} bytes pending)"
            )
        logger.debug(f"Encoded {self.entries} tree entries")


class TreeDecoder:
    """Binary tree entries in, pretty tree lines out."""

    def __init__(self):
        self._pending = bytearray()
        self.entries = 0

    @property
    def pending(self) -> int:
        return len(self._pending)

    def feed(self, data: bytes) -> bytes:
        return b"".join(entry.to_pretty() for entry in self.feed_entries(data))

    def feed_entries(self, data: bytes) -> list[TreeEntry]:
        self._pending += data
        entries = []
        start = 0
        while (found := self._next_entry(start)) is not None:
            entry, start = found
            entries.append(entry)
        del self._pending[:start]
        self.entries += len(entries)
        return entries

    def _next_entry(self, start: int) -> tuple[TreeEntry, int] | None:
        buf = self._pending
        space = buf.find(b" ", start)
        if space == -1:
            if start < len(buf) and GitObject.from_mode(buf[start : start + 1]) is None:
                raise MalformedTreeError(f"unrecognized mode {bytes(buf[start:])!r}")
            return None
        mode = bytes(buf[start:space])
        if not mode.isdigit() or GitObject.from_mode(mode) is None:
            raise MalformedTreeError(f"unrecognized mode {mode!r}")
        nul = buf.find(NULL_BYTE, space + 1)
        if nul == -1:
            return None
        end = nul + 1 + HASH_SIZE
        if len(buf) < end:
            return None
        file_name = bytes(buf[space + 1 : nul])
        if not file_name:
            raise MalformedTreeError(f"empty name for tree entry with mode {mode!r}")
        entry = TreeEntry(mode=mode, file_name=file_name, raw_hash=bytes(buf[nul + 1 : end]))
        return entry, end

    def close(self) -> None:
        if self._pending:
            raise TruncatedError(
                f"tree data ended inside an entry ({len(self._pending)} bytes pending)"
            )


def parse_tree(content: bytes) -> Iterator[TreeEntry]:
    decoder = TreeDecoder()
    yield from decoder.feed_entries(content)
    decoder.close()
