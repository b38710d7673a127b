import io
import zlib
from typing import BinaryIO

from gitobj.config import Settings, get_settings
from gitobj.errors import MalformedHeaderError, TruncatedError
from gitobj.models.tree import TreeDecoder
from gitobj.models.types import GitObject

__all__ = ["ObjectReader", "HEADER_LIMIT"]

# "commit " plus twenty length digits plus the terminating NUL
HEADER_LIMIT = 28


class ObjectReader(io.RawIOBase):
    """Reads one loose object from a deflated byte source.

    The header is parsed on construction, so :attr:`type` and :attr:`length`
    are available before any payload is read. With ``pretty=True`` a tree
    payload is rendered as pretty tree lines; other types are unaffected.

    Closing the reader does not close ``source`` unless ``owns_source`` is set.
    """

    def __init__(
        self,
        source: BinaryIO,
        *,
        pretty: bool = False,
        owns_source: bool = False,
        settings: Settings | None = None,
    ):
        super().__init__()
        self.pretty = pretty
        self.owns_source = owns_source
        self.settings = settings or get_settings()
        self.reset(source)

    @property
    def type(self) -> GitObject:
        return self._type

    @property
    def length(self) -> int:
        return self._length

    def readable(self) -> bool:
        return True

    def reset(self, source: BinaryIO) -> None:
        """Start reading a new object from ``source``, keeping the options."""
        self._source = source
        self._inflater = zlib.decompressobj()
        self._source_done = False
        self._buffer = bytearray()
        self._payload_read = 0
        self._tree = None
        self._rendered = bytearray()
        self._type, self._length = self._read_header()
        if self.pretty and self._type is GitObject.TREE:
            self._tree = TreeDecoder()

    def _read_header(self) -> tuple[GitObject, int]:
        lookahead = bytearray()
        while len(lookahead) < HEADER_LIMIT and b"\x00" not in lookahead:
            data = self._inflate(HEADER_LIMIT - len(lookahead))
            if not data:
                break
            lookahead += data
        header, sep, rest = bytes(lookahead).partition(b"\x00")
        if not sep:
            raise MalformedHeaderError(f"no header terminator in {header[:HEADER_LIMIT]!r}")
        # whatever followed the header is the start of the payload
        self._buffer += rest
        type_token, sep, length = header.partition(b" ")
        if not sep:
            raise MalformedHeaderError(f"missing length in header {header!r}")
        git_object = GitObject.parse(type_token)
        if not length.isdigit():
            raise MalformedHeaderError(f"invalid length in header {header!r}")
        return git_object, int(length)

    def _inflate(self, size: int) -> bytes:
        """Return up to ``size`` decompressed bytes, b"" once the stream is done."""
        while True:
            if self._inflater.unconsumed_tail:
                data = self._inflater.decompress(self._inflater.unconsumed_tail, size)
            elif self._inflater.eof or self._source_done:
                return b""
            else:
                chunk = self._source.read(self.settings.chunk_size)
                if not chunk:
                    self._source_done = True
                    data = self._inflater.flush()
                    if not self._inflater.eof:
                        raise TruncatedError("compressed object stream ended early")
                    return data
                data = self._inflater.decompress(chunk, size)
            if data:
                return data

    def _read_payload(self, size: int) -> bytes:
        if self._buffer:
            data = bytes(self._buffer[:size])
            del self._buffer[:size]
        else:
            data = self._inflate(size)
        self._payload_read += len(data)
        if self._payload_read > self._length:
            raise MalformedHeaderError(
                f"{self._type} payload is longer than the declared {self._length} bytes"
            )
        if not data and self._payload_read < self._length:
            raise TruncatedError(
                f"{self._type} payload ended after {self._payload_read} "
                f"of {self._length} bytes"
            )
        return data

    def _read_pretty(self, size: int) -> bytes:
        while not self._rendered:
            chunk = self._read_payload(self.settings.chunk_size)
            if not chunk:
                self._tree.close()
                break
            self._rendered += self._tree.feed(chunk)
        data = bytes(self._rendered[:size])
        del self._rendered[:size]
        return data

    def readinto(self, b) -> int:
        if self.closed:
            raise ValueError("read from a closed reader")
        if not len(b):
            return 0
        if self._tree is not None:
            data = self._read_pretty(len(b))
        else:
            data = self._read_payload(len(b))
        b[: len(data)] = data
        return len(data)

    def close(self) -> None:
        if not self.closed:
            self._inflater = None
            if self.owns_source:
                self._source.close()
        super().close()
