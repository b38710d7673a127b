import sys
import zlib

from dotenv import find_dotenv, load_dotenv
from loguru import logger

from gitobj.config import get_settings
from gitobj.errors import GitError
from gitobj.models import Git
from gitobj.utils import get_parser


def configure_logging(level: str):
    logger.remove()
    logger.add(sys.stderr, level=level, format="gitobj: {message}")


def main(argv=None) -> int:
    parser = get_parser()
    args = parser.parse_args(argv)
    load_dotenv(find_dotenv(usecwd=True))
    settings = get_settings()
    configure_logging(settings.log_level)
    git = Git(settings=settings)
    try:
        match args.command:
            case "init":
                git.init_repo(args.directory, bare=args.bare)
            case "cat-file":
                git.cat_file(
                    args.hash,
                    show_type=args.show_type,
                    show_size=args.show_size,
                    pretty_print=args.pretty_print,
                )
            case "hash-object":
                if args.path is None and not args.stdin:
                    parser.error("hash-object needs a path or --stdin")
                git.hash_object(
                    args.path,
                    git_object=args.git_object,
                    write=args.write,
                    stdin=args.stdin,
                )
            case "ls-tree":
                git.ls_tree(args.hash_value, name_only=args.name_only)
            case "mktree":
                git.mktree()
            case _:
                raise RuntimeError(f"Unknown command #{args.command}")
    except (GitError, OSError, zlib.error) as exc:
        logger.error(f"{args.command}: {exc}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
