import io
import os
import pathlib
import tempfile
import threading
from abc import ABC, abstractmethod
from typing import BinaryIO, Callable, Iterable, Iterator

from loguru import logger

from gitobj.config import Settings, get_settings
from gitobj.errors import (
    AmbiguousHashError,
    HeaderOrderError,
    InvalidHashError,
    ObjectNotFoundError,
    UnsupportedError,
)
from gitobj.models.reader import ObjectReader
from gitobj.models.repo import find_git_dir, init_repo
from gitobj.models.types import HEX_HASH_SIZE, GitObject
from gitobj.models.writer import UNKNOWN_SIZE, ObjectWriter, WriterState

__all__ = [
    "ObjectStore",
    "StoreWriter",
    "DiskStore",
    "MemoryStore",
    "PackStore",
    "normalize_hash",
]

BUCKET_SIZE = 2
HEX_DIGITS = frozenset("0123456789abcdef")


def normalize_hash(hash_value: str) -> str:
    """Lowercase a full or abbreviated hash and check that it can be looked up."""
    value = hash_value.strip().lower()
    if not BUCKET_SIZE <= len(value) <= HEX_HASH_SIZE or not HEX_DIGITS.issuperset(value):
        raise InvalidHashError(
            f"expected {BUCKET_SIZE} to {HEX_HASH_SIZE} hex characters, got {hash_value!r}"
        )
    return value


def _is_hex(name: str, length: int) -> bool:
    return len(name) == length and HEX_DIGITS.issuperset(name)


class StoreWriter(ObjectWriter):
    """ObjectWriter whose successful close publishes the object into a store.

    The staging sink is only opened by :meth:`write_header`, so a writer that
    never gets a header leaves nothing behind. If finalizing or publishing
    fails, the staged bytes are discarded and nothing is published.
    """

    def __init__(
        self,
        stage: Callable[[], BinaryIO],
        *,
        publish: Callable[[str], None],
        discard: Callable[[], None],
        settings: Settings | None = None,
    ):
        super().__init__(None, settings=settings)
        self._stage = stage
        self._publish = publish
        self._discard = discard

    def write_header(self, git_object: GitObject, size: int = UNKNOWN_SIZE) -> int:
        if self.state is WriterState.IDLE:
            self.sink = self._stage()
        return super().write_header(git_object, size)

    def close(self) -> None:
        if self.state is not WriterState.HEADER_WRITTEN:
            state = self.state
            if state is WriterState.IDLE:
                self.abort()
            raise HeaderOrderError(f"cannot close a writer in state {state.name}")
        try:
            super().close()
            self._publish(self.hash)
        except BaseException:
            self._discard()
            raise

    def abort(self) -> None:
        super().abort()
        self._discard()


class ObjectStore(ABC):
    """Content-addressable storage of loose objects."""

    def __init__(self, *, settings: Settings | None = None):
        self.settings = settings or get_settings()

    @abstractmethod
    def object(self, hash_value: str) -> BinaryIO:
        """Open the deflated bytes of the object named by a full or abbreviated hash."""

    @abstractmethod
    def writer(self) -> StoreWriter:
        """New writer that publishes into this store when closed."""

    @abstractmethod
    def hashes(self) -> Iterator[str]:
        """Full hashes of every stored object."""

    @abstractmethod
    def __contains__(self, hash_value: str) -> bool:
        pass

    def reader(self, hash_value: str, *, pretty: bool = False) -> ObjectReader:
        source = self.object(hash_value)
        try:
            return ObjectReader(
                source, pretty=pretty, owns_source=True, settings=self.settings
            )
        except BaseException:
            source.close()
            raise

    @staticmethod
    def _match(hash_value: str, candidates: Iterable[str]) -> str:
        matches = [candidate for candidate in candidates if candidate.startswith(hash_value)]
        if not matches:
            raise ObjectNotFoundError(hash_value)
        if len(matches) > 1:
            raise AmbiguousHashError(hash_value, matches)
        logger.debug(f"Resolved {hash_value} to {matches[0]}")
        return matches[0]


# shared by every DiskStore of the process so that two stores opened on the
# same repository still serialize their publishes
_bucket_locks: dict[tuple[pathlib.Path, str], threading.Lock] = {}
_bucket_locks_guard = threading.Lock()


def _bucket_lock(objects_dir: pathlib.Path, bucket: str) -> threading.Lock:
    with _bucket_locks_guard:
        return _bucket_locks.setdefault((objects_dir, bucket), threading.Lock())


class DiskStore(ObjectStore):
    """Loose objects under ``<git_dir>/objects/xx/yyyy...``.

    >>> store = DiskStore.from_path(".")  # doctest: +SKIP
    """

    def __init__(self, git_dir: os.PathLike | str, *, settings: Settings | None = None):
        super().__init__(settings=settings)
        self.git_dir = pathlib.Path(git_dir).resolve()
        self.objects_dir = self.git_dir / "objects"
        self.objects_dir.mkdir(parents=True, exist_ok=True)

    def __repr__(self):
        return f"{type(self).__name__}({str(self.git_dir)!r})"

    @classmethod
    def from_path(cls, path: os.PathLike | str = ".", *, settings: Settings | None = None):
        return cls(find_git_dir(path), settings=settings)

    @classmethod
    def temporary(cls, *, settings: Settings | None = None) -> "DiskStore":
        """Store in a freshly initialized repository under a new temporary directory.

        The caller is responsible for removing ``store.git_dir.parent``.
        """
        work_dir = tempfile.mkdtemp(prefix="gitobj-")
        return cls(init_repo(work_dir), settings=settings)

    def path(self, hash_value: str) -> pathlib.Path:
        return self.objects_dir / hash_value[:BUCKET_SIZE] / hash_value[BUCKET_SIZE:]

    def object(self, hash_value: str) -> BinaryIO:
        hash_value = normalize_hash(hash_value)
        if len(hash_value) == HEX_HASH_SIZE:
            try:
                return self.path(hash_value).open("rb")
            except FileNotFoundError:
                raise ObjectNotFoundError(hash_value) from None

        bucket = self.objects_dir / hash_value[:BUCKET_SIZE]
        if not bucket.is_dir():
            raise ObjectNotFoundError(hash_value)
        names = (
            bucket.name + entry.name
            for entry in bucket.iterdir()
            if _is_hex(entry.name, HEX_HASH_SIZE - BUCKET_SIZE)
        )
        return self.path(self._match(hash_value, names)).open("rb")

    def hashes(self) -> Iterator[str]:
        for bucket in sorted(self.objects_dir.iterdir()):
            if not bucket.is_dir() or not _is_hex(bucket.name, BUCKET_SIZE):
                continue
            for entry in sorted(bucket.iterdir()):
                if _is_hex(entry.name, HEX_HASH_SIZE - BUCKET_SIZE):
                    yield bucket.name + entry.name

    def __contains__(self, hash_value: str) -> bool:
        return (
            _is_hex(hash_value, HEX_HASH_SIZE) and self.path(hash_value).is_file()
        )

    def writer(self) -> StoreWriter:
        staging = None

        def stage() -> BinaryIO:
            nonlocal staging
            staging = tempfile.NamedTemporaryFile(
                dir=self.objects_dir, prefix="tmp_obj_", delete=False
            )
            return staging

        def publish(hash_value: str):
            staging.close()
            staging_path = pathlib.Path(staging.name)
            target = self.path(hash_value)
            with _bucket_lock(self.objects_dir, hash_value[:BUCKET_SIZE]):
                if target.exists():
                    logger.debug(f"Object {hash_value} already stored")
                    staging_path.unlink()
                    return
                target.parent.mkdir(exist_ok=True)
                staging_path.chmod(0o444)
                os.replace(staging_path, target)
            logger.debug(f"Stored object {hash_value}")

        def discard():
            if staging is None:
                return
            staging.close()
            pathlib.Path(staging.name).unlink(missing_ok=True)

        return StoreWriter(stage, publish=publish, discard=discard, settings=self.settings)


class MemoryStore(ObjectStore):
    """Objects kept in a dict, safe to share between threads."""

    def __init__(self, *, settings: Settings | None = None):
        super().__init__(settings=settings)
        self._objects: dict[str, bytes] = {}
        self._lock = threading.Lock()

    def __repr__(self):
        return f"{type(self).__name__}(<{len(self._objects)} objects>)"

    def object(self, hash_value: str) -> BinaryIO:
        hash_value = normalize_hash(hash_value)
        with self._lock:
            if (data := self._objects.get(hash_value)) is None:
                data = self._objects[self._match(hash_value, self._objects)]
        return io.BytesIO(data)

    def hashes(self) -> Iterator[str]:
        with self._lock:
            hashes = sorted(self._objects)
        yield from hashes

    def __contains__(self, hash_value: str) -> bool:
        with self._lock:
            return hash_value in self._objects

    def writer(self) -> StoreWriter:
        staging = io.BytesIO()

        def publish(hash_value: str):
            with self._lock:
                if hash_value in self._objects:
                    logger.debug(f"Object {hash_value} already stored")
                    return
                self._objects[hash_value] = staging.getvalue()
            logger.debug(f"Stored object {hash_value}")

        def discard():
            staging.close()

        return StoreWriter(
            lambda: staging, publish=publish, discard=discard, settings=self.settings
        )


class PackStore(ObjectStore):
    """Placeholder for packfile storage, which is not implemented."""

    def object(self, hash_value: str) -> BinaryIO:
        raise UnsupportedError("pack stores cannot resolve objects yet")

    def writer(self) -> StoreWriter:
        raise UnsupportedError("pack stores cannot write objects yet")

    def hashes(self) -> Iterator[str]:
        raise UnsupportedError("pack stores cannot list objects yet")

    def __contains__(self, hash_value: str) -> bool:
        raise UnsupportedError("pack stores cannot look up objects yet")
