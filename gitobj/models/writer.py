import hashlib
import tempfile
import zlib
from enum import Enum, auto
from typing import BinaryIO

from loguru import logger

from gitobj.config import Settings, get_settings
from gitobj.errors import HeaderOrderError, MalformedHeaderError
from gitobj.models.tree import TreeEncoder
from gitobj.models.types import GitObject

__all__ = ["ObjectWriter", "WriterState", "UNKNOWN_SIZE"]

UNKNOWN_SIZE = -1


class WriterState(Enum):
    IDLE = auto()
    HEADER_WRITTEN = auto()
    CLOSED = auto()


class ObjectWriter:
    """Writes one loose object (deflated ``<type> <size>\\0<payload>``) to ``sink``.

    Call :meth:`write_header` first, then :meth:`write` any number of times,
    then :meth:`close`. When the size is unknown (negative) or the object is a
    tree, the payload is spooled to a temporary file and the header is only
    emitted on close, once the real size is known. Tree payloads are written
    in pretty form and stored in binary form.

    The sink is never closed by the writer.
    """

    def __init__(self, sink: BinaryIO, *, settings: Settings | None = None):
        self.sink = sink
        self.settings = settings or get_settings()
        self.state = WriterState.IDLE
        self.git_object: GitObject | None = None
        self.size: int | None = None
        self._written = 0
        self._compressor = zlib.compressobj(self.settings.compression_level)
        self._hasher = hashlib.sha1()
        self._hash_value: str | None = None
        self._spool = None
        self._tree: TreeEncoder | None = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self.state is WriterState.CLOSED:
            return
        if exc_type is None:
            self.close()
        else:
            self.abort()

    @property
    def hash(self) -> str:
        if self._hash_value is None:
            raise HeaderOrderError("hash is only available after a successful close")
        return self._hash_value

    def write_header(self, git_object: GitObject, size: int = UNKNOWN_SIZE) -> int:
        if self.state is not WriterState.IDLE:
            raise HeaderOrderError("header already written")
        self.git_object = git_object
        self.state = WriterState.HEADER_WRITTEN
        if git_object is GitObject.TREE or size < 0:
            self._spool = tempfile.TemporaryFile(
                prefix="gitobj-spool-", dir=self.settings.spool_dir
            )
            if git_object is GitObject.TREE:
                self._tree = TreeEncoder()
            logger.debug(f"Spooling {git_object} of unknown size")
            return 0
        self.size = size
        return self._emit(git_object.header(size))

    def write(self, data: bytes) -> int:
        if self.state is WriterState.IDLE:
            raise HeaderOrderError("write_header must be called before write")
        if self.state is WriterState.CLOSED:
            raise HeaderOrderError("write on a closed writer")
        if self._spool is not None:
            self._spool.write(data if self._tree is None else self._tree.feed(data))
            return len(data)
        if self._written + len(data) > self.size:
            raise MalformedHeaderError(
                f"{self.git_object} declared {self.size} bytes, "
                f"got at least {self._written + len(data)}"
            )
        self._written += len(data)
        self._emit(data)
        return len(data)

    def close(self) -> None:
        if self.state is WriterState.IDLE:
            raise HeaderOrderError("close called before write_header")
        if self.state is WriterState.CLOSED:
            raise HeaderOrderError("writer already closed")
        self.state = WriterState.CLOSED
        try:
            if self._spool is not None:
                self._flush_spool()
            elif self._written != self.size:
                raise MalformedHeaderError(
                    f"{self.git_object} declared {self.size} bytes, got {self._written}"
                )
            self.sink.write(self._compressor.flush())
        finally:
            self._discard_spool()
        self._hash_value = self._hasher.hexdigest()

    def abort(self) -> None:
        """Drop any spooled payload and leave the writer closed without a hash."""
        self.state = WriterState.CLOSED
        self._discard_spool()

    def _flush_spool(self):
        if self._tree is not None:
            self._tree.close()
        self.size = self._spool.tell()
        self._spool.seek(0)
        self._emit(self.git_object.header(self.size))
        while chunk := self._spool.read(self.settings.chunk_size):
            self._emit(chunk)

    def _discard_spool(self):
        if self._spool is not None:
            self._spool.close()
            self._spool = None

    def _emit(self, data: bytes) -> int:
        self._hasher.update(data)
        self.sink.write(self._compressor.compress(data))
        return len(data)
