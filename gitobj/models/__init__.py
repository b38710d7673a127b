from gitobj.models.git import Git
from gitobj.models.reader import ObjectReader
from gitobj.models.repo import find_git_dir, init_repo
from gitobj.models.store import DiskStore, MemoryStore, ObjectStore, PackStore
from gitobj.models.tree import TreeDecoder, TreeEncoder, TreeEntry, parse_tree
from gitobj.models.types import GitObject, object_hash
from gitobj.models.writer import UNKNOWN_SIZE, ObjectWriter

__all__ = [
    "Git",
    "GitObject",
    "object_hash",
    "ObjectReader",
    "ObjectWriter",
    "UNKNOWN_SIZE",
    "TreeEntry",
    "TreeEncoder",
    "TreeDecoder",
    "parse_tree",
    "ObjectStore",
    "DiskStore",
    "MemoryStore",
    "PackStore",
    "find_git_dir",
    "init_repo",
]
