import contextlib
import os
import pathlib
import sys
from typing import BinaryIO

from loguru import logger

from gitobj.config import Settings, get_settings
from gitobj.errors import GitError
from gitobj.models.repo import init_repo
from gitobj.models.store import DiskStore, ObjectStore
from gitobj.models.tree import TreeEntry, parse_tree
from gitobj.models.types import GitObject
from gitobj.models.writer import UNKNOWN_SIZE, ObjectWriter

__all__ = ["Git"]


def _write_stdout(data: bytes):
    sys.stdout.flush()
    sys.stdout.buffer.write(data)
    sys.stdout.buffer.flush()


class Git:
    """Plumbing commands on top of an object store."""

    def __init__(
        self,
        working_directory: os.PathLike | str = ".",
        *,
        store: ObjectStore | None = None,
        settings: Settings | None = None,
    ):
        self.working_directory = pathlib.Path(working_directory)
        self.settings = settings or get_settings()
        self._store = store

    @property
    def store(self) -> ObjectStore:
        if self._store is None:
            self._store = DiskStore.from_path(self.working_directory, settings=self.settings)
        return self._store

    def init_repo(self, directory: os.PathLike | str | None = None, *, bare: bool = False):
        path = self.working_directory if directory is None else pathlib.Path(directory)
        git_dir = init_repo(path, bare=bare)
        sys.stdout.write(f"Initialized empty Git repository in {git_dir.resolve()}/\n")
        return git_dir

    def cat_file(
        self,
        hash_: str,
        *,
        show_type: bool = False,
        show_size: bool = False,
        pretty_print: bool = False,
    ) -> GitObject:
        with self.store.reader(hash_, pretty=pretty_print) as reader:
            if show_type:
                sys.stdout.write(f"{reader.type}\n")
            if show_size:
                sys.stdout.write(f"{reader.length}\n")
            if pretty_print:
                while chunk := reader.read(self.settings.chunk_size):
                    _write_stdout(chunk)
            return reader.type

    def hash_object(
        self,
        path: pathlib.Path | None = None,
        *,
        git_object: GitObject = GitObject.BLOB,
        write: bool = False,
        stdin: bool = False,
    ) -> str:
        with contextlib.ExitStack() as stack:
            if stdin:
                source = sys.stdin.buffer
                size = UNKNOWN_SIZE
            else:
                source = stack.enter_context(path.open("rb"))
                size = os.fstat(source.fileno()).st_size
            if write:
                writer = self.store.writer()
            else:
                sink = stack.enter_context(open(os.devnull, "wb"))
                writer = ObjectWriter(sink, settings=self.settings)
            hash_value = self._copy_into(writer, source, git_object, size)
        sys.stdout.write(f"{hash_value}\n")
        return hash_value

    def ls_tree(self, hash_value: str, *, name_only: bool = False) -> list[TreeEntry]:
        with self.store.reader(hash_value) as reader:
            if reader.type is not GitObject.TREE:
                raise GitError(f"not a tree object: {hash_value}")
            entries = list(parse_tree(reader.read()))
        for entry in entries:
            _write_stdout(entry.file_name + b"\n" if name_only else entry.to_pretty())
        return entries

    def mktree(self, source: BinaryIO | None = None) -> str:
        source = sys.stdin.buffer if source is None else source
        hash_value = self._copy_into(self.store.writer(), source, GitObject.TREE)
        sys.stdout.write(f"{hash_value}\n")
        return hash_value

    def _copy_into(
        self,
        writer: ObjectWriter,
        source: BinaryIO,
        git_object: GitObject,
        size: int = UNKNOWN_SIZE,
    ) -> str:
        with writer:
            writer.write_header(git_object, size)
            while chunk := source.read(self.settings.chunk_size):
                writer.write(chunk)
        logger.debug(f"Hashed {git_object} {writer.hash} ({writer.size} bytes)")
        return writer.hash
