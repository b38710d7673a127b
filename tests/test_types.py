import hashlib

import pytest

from gitobj.errors import UnknownTypeError
from gitobj.models import GitObject, object_hash


@pytest.mark.parametrize(
    "git_object, length, expected",
    [
        (GitObject.BLOB, 12, b"blob 12\x00"),
        (GitObject.TREE, 0, b"tree 0\x00"),
        (GitObject.COMMIT, 1234567890, b"commit 1234567890\x00"),
    ],
)
def test_header(git_object, length, expected):
    assert git_object.header(length) == expected


@pytest.mark.parametrize("token", [b"blob", "blob"])
def test_parse(token):
    assert GitObject.parse(token) is GitObject.BLOB


@pytest.mark.parametrize("token", [b"tag", b"Blob", b"", "blobs"])
def test_parse_unknown_type(token):
    with pytest.raises(UnknownTypeError):
        GitObject.parse(token)


@pytest.mark.parametrize(
    "mode, expected",
    [
        (b"100644", GitObject.BLOB),
        (b"100755", GitObject.BLOB),
        (b"120000", GitObject.BLOB),
        (b"40000", GitObject.TREE),
        (b"30000", None),
        (b"", None),
    ],
)
def test_from_mode(mode, expected):
    assert GitObject.from_mode(mode) is expected


def test_mode():
    assert GitObject.BLOB.mode == "100644"
    assert GitObject.TREE.mode == "040000"
    with pytest.raises(ValueError):
        GitObject.COMMIT.mode


@pytest.mark.parametrize(
    "data, expected_hash_value",
    [
        (b"hello world\n", "3b18e512dba79e4c8300dd08aeb37f8e728b8dad"),
        (b"hello, world", "8c01d89ae06311834ee4b1fab2f0414d35f01102"),
        (b"", "e69de29bb2d1d6434b8b29ae775ad8c2e48c5391"),
    ],
)
def test_object_hash(data, expected_hash_value):
    assert object_hash(GitObject.BLOB, data) == expected_hash_value
    assert expected_hash_value == hashlib.sha1(b"blob %d\x00" % len(data) + data).hexdigest()
