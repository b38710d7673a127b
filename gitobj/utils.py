import pathlib
from argparse import ArgumentParser

from gitobj.models.types import GitObject


def get_parser():
    parser = ArgumentParser(prog="gitobj")
    subparsers = parser.add_subparsers(dest="command", required=True)

    # init
    init_parser = subparsers.add_parser("init")
    init_parser.add_argument("directory", nargs="?", type=pathlib.Path)
    init_parser.add_argument("--bare", action="store_true")

    # cat-file
    cat_file_parser = subparsers.add_parser("cat-file")
    cat_file_mode = cat_file_parser.add_mutually_exclusive_group(required=True)
    cat_file_mode.add_argument(
        "-t", dest="show_type", action="store_true", help="show object type"
    )
    cat_file_mode.add_argument(
        "-s", dest="show_size", action="store_true", help="show object size"
    )
    cat_file_mode.add_argument(
        "-p", "--pretty-print", action="store_true", help="pretty print"
    )
    cat_file_parser.add_argument(
        "hash",
    )

    # hash-object
    hash_object_parser = subparsers.add_parser("hash-object")
    hash_object_parser.add_argument("path", nargs="?", type=pathlib.Path)
    hash_object_parser.add_argument("-w", "--write", action="store_true")
    hash_object_parser.add_argument(
        "-t",
        dest="git_object",
        type=GitObject,
        choices=list(GitObject),
        default=GitObject.BLOB,
    )
    hash_object_parser.add_argument("--stdin", action="store_true")

    # ls-tree
    ls_tree_parser = subparsers.add_parser("ls-tree")
    ls_tree_parser.add_argument("--name-only", action="store_true")
    ls_tree_parser.add_argument("hash_value")

    # mktree
    _mktree_parser = subparsers.add_parser("mktree")

    return parser
