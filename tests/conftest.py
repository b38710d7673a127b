import contextlib

import pytest

from gitobj.models import DiskStore, MemoryStore, init_repo


@pytest.fixture
def change_to_tmp_dir(tmp_path):
    with contextlib.chdir(tmp_path):
        yield tmp_path


@pytest.fixture
def git_dir(tmp_path):
    return init_repo(tmp_path)


@pytest.fixture
def disk_store(git_dir):
    return DiskStore(git_dir)


@pytest.fixture(params=["disk", "memory"])
def store(request, tmp_path):
    if request.param == "disk":
        return DiskStore(init_repo(tmp_path))
    return MemoryStore()
