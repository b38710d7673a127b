import binascii

import pytest

from gitobj.errors import MalformedHeaderError, MalformedTreeError, TruncatedError
from gitobj.models import TreeDecoder, TreeEncoder, TreeEntry, parse_tree

BLOB_HASH = "8c01d89ae06311834ee4b1fab2f0414d35f01102"
TREE_HASH = "4b825dc642cb6eb9a060e54bf8d69288fbee4904"

PRETTY = (
    f"100644 blob {BLOB_HASH}\thello.txt\n"
    f"040000 tree {TREE_HASH}\tempty dir\n"
    f"100755 blob {BLOB_HASH}\ta script.sh\n"
).encode()

BINARY = (
    b"100644 hello.txt\x00"
    + binascii.unhexlify(BLOB_HASH)
    + b"40000 empty dir\x00"
    + binascii.unhexlify(TREE_HASH)
    + b"100755 a script.sh\x00"
    + binascii.unhexlify(BLOB_HASH)
)


def feed_in_chunks(transcoder, data: bytes, size: int) -> bytes:
    out = b"".join(
        transcoder.feed(data[i : i + size]) for i in range(0, len(data), size)
    )
    transcoder.close()
    return out


class TestTreeEntry:
    def test_hash(self):
        entry = TreeEntry(
            mode=b"100644",
            file_name=b"hello.txt",
            raw_hash=binascii.unhexlify(BLOB_HASH),
        )
        assert entry.hash == BLOB_HASH
        assert entry.to_bytes() == BINARY[:37]
        assert entry.to_pretty() == f"100644 blob {BLOB_HASH}\thello.txt\n".encode()

    def test_from_pretty_strips_padding(self):
        entry = TreeEntry.from_pretty(f"040000 tree {TREE_HASH}\tsub".encode())
        assert entry.mode == b"40000"
        assert entry.to_pretty() == f"040000 tree {TREE_HASH}\tsub\n".encode()

    @pytest.mark.parametrize(
        "line",
        [
            f"100644 blob {BLOB_HASH[:-1]}\thello.txt".encode(),
            f"100644 blob {BLOB_HASH[:-1]}z\thello.txt".encode(),
            f"100644 blob {BLOB_HASH} hello.txt".encode(),
            f"100644 blob {BLOB_HASH}\t".encode(),
            f"mode blob {BLOB_HASH}\thello.txt".encode(),
            f"0 blob {BLOB_HASH}\thello.txt".encode(),
            f"30000 blob {BLOB_HASH}\thello.txt".encode(),
        ],
    )
    def test_from_pretty_malformed(self, line):
        with pytest.raises(MalformedTreeError):
            TreeEntry.from_pretty(line)


class TestTreeEncoder:
    def test_encode(self):
        encoder = TreeEncoder()
        assert encoder.feed(PRETTY) == BINARY
        encoder.close()
        assert encoder.entries == 3

    @pytest.mark.parametrize("size", [1, 2, 7, 40, 41, 64])
    def test_encode_split_chunks(self, size):
        assert feed_in_chunks(TreeEncoder(), PRETTY, size) == BINARY

    def test_partial_line_is_kept(self):
        encoder = TreeEncoder()
        line = f"100644 blob {BLOB_HASH}\thello.txt\n".encode()
        assert encoder.feed(line[:20]) == b""
        assert encoder.pending == 20
        assert encoder.feed(line[20:]) == BINARY[:37]
        assert encoder.pending == 0

    def test_invalid_hex(self):
        line = f"100644 blob {'g' * 40}\thello.txt\n".encode()
        with pytest.raises(MalformedHeaderError):
            TreeEncoder().feed(line)

    def test_truncated(self):
        encoder = TreeEncoder()
        encoder.feed(PRETTY[:-1])
        with pytest.raises(TruncatedError):
            encoder.close()

    def test_keeps_order(self):
        lines = PRETTY.splitlines(keepends=True)
        reversed_pretty = b"".join(reversed(lines))
        encoded = TreeEncoder().feed(reversed_pretty)
        names = [entry.file_name for entry in parse_tree(encoded)]
        assert names == [b"a script.sh", b"empty dir", b"hello.txt"]


class TestTreeDecoder:
    def test_decode(self):
        decoder = TreeDecoder()
        assert decoder.feed(BINARY) == PRETTY
        decoder.close()
        assert decoder.entries == 3

    @pytest.mark.parametrize("size", [1, 3, 17, 20, 21, 100])
    def test_decode_split_chunks(self, size):
        assert feed_in_chunks(TreeDecoder(), BINARY, size) == PRETTY

    def test_hash_bytes_split_from_name(self):
        decoder = TreeDecoder()
        assert decoder.feed(BINARY[:30]) == b""
        assert decoder.feed(BINARY[30:37]) == f"100644 blob {BLOB_HASH}\thello.txt\n".encode()

    @pytest.mark.parametrize(
        "data",
        [
            b"30000 name\x00" + bytes(20),
            b"3",
            b"10x644 name\x00" + bytes(20),
        ],
    )
    def test_unrecognized_mode(self, data):
        with pytest.raises(MalformedTreeError):
            TreeDecoder().feed(data)

    def test_empty_name(self):
        with pytest.raises(MalformedTreeError):
            TreeDecoder().feed(b"100644 \x00" + bytes(20))

    def test_truncated(self):
        decoder = TreeDecoder()
        decoder.feed(BINARY[:-5])
        with pytest.raises(TruncatedError):
            decoder.close()


def test_round_trip():
    assert TreeDecoder().feed(TreeEncoder().feed(PRETTY)) == PRETTY


def test_round_trip_restores_padding_only_for_trees():
    unpadded = f"40000 tree {TREE_HASH}\tsub\n".encode()
    assert TreeDecoder().feed(TreeEncoder().feed(unpadded)) == b"0" + unpadded


def test_parse_tree():
    entries = list(parse_tree(BINARY))
    assert [entry.hash for entry in entries] == [BLOB_HASH, TREE_HASH, BLOB_HASH]
    assert [entry.mode for entry in entries] == [b"100644", b"40000", b"100755"]


def test_parse_tree_truncated():
    with pytest.raises(TruncatedError):
        list(parse_tree(BINARY[:-1]))
