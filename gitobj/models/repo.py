import os
import pathlib

from loguru import logger

from gitobj.errors import NotARepositoryError

__all__ = ["find_git_dir", "init_repo"]

CONFIG = "[core]\n\trepositoryformatversion = 0\n\tfilemode = true\n"
DESCRIPTION = "Unnamed repository; edit this file 'description' to name the repository.\n"


def _is_bare(path: pathlib.Path) -> bool:
    return all((path / name).exists() for name in ("config", "HEAD", "objects"))


def find_git_dir(path: os.PathLike | str = ".") -> pathlib.Path:
    """Walk up from ``path`` to the git directory of the enclosing repository.

    Returns ``<worktree>/.git`` for a regular repository or the directory
    itself for a bare one.
    """
    current = pathlib.Path(path).resolve()
    for candidate in (current, *current.parents):
        if (candidate / ".git").is_dir():
            return candidate / ".git"
        if _is_bare(candidate):
            return candidate
    raise NotARepositoryError(f"not a git repository (or any parent): {current}")


def init_repo(path: os.PathLike | str = ".", *, bare: bool = False) -> pathlib.Path:
    """Create an empty repository layout and return its git directory."""
    git_dir = pathlib.Path(path)
    if not bare:
        git_dir = git_dir / ".git"
    git_dir.mkdir(parents=True, exist_ok=True)
    if any(git_dir.iterdir()):
        raise FileExistsError(f"directory not empty: {git_dir}")

    dirs = [
        "branches",
        "hooks",
        "info",
        "objects/info",
        "objects/pack",
        "refs/heads",
        "refs/tags",
    ]
    for _dir in dirs:
        (git_dir / _dir).mkdir(parents=True)
    (git_dir / "info" / "exclude").write_text("")
    (git_dir / "HEAD").write_text("ref: refs/heads/main\n")
    config = CONFIG + ("\tbare = true\n" if bare else "\tbare = false\n")
    (git_dir / "config").write_text(config)
    (git_dir / "description").write_text(DESCRIPTION)
    logger.debug(f"Initialized empty repository in {git_dir}")
    return git_dir
