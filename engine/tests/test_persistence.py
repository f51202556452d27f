"""Tests for the binary genotype format."""

import io
import struct
import pytest
import sys
from pathlib import Path

import numpy as np

sys.path.insert(0, str(Path(__file__).parent.parent))

from playout.errors import PersistenceError
from playout.genetic.persistence import (
    MAGIC, FORMAT_VERSION, load_genotype, read_genotype, save_genotype, write_genotype
)


def encode(individuals) -> bytes:
    stream = io.BytesIO()
    write_genotype(stream, individuals)
    return stream.getvalue()


class TestGenotypeStream:
    def test_round_trip_preserves_order_and_values(self):
        individuals = [np.array([3, -1, 2**40]), np.array([7]), np.array([0, 0])]
        restored = read_genotype(io.BytesIO(encode(individuals)))

        assert [g.tolist() for g in restored] == [[3, -1, 2**40], [7], [0, 0]]
        assert all(g.dtype == np.int64 for g in restored)

    def test_header_layout(self):
        data = encode([np.array([1, 2])])
        assert data[:4] == MAGIC
        assert struct.unpack("<H", data[4:6]) == (FORMAT_VERSION,)
        assert struct.unpack("<I", data[6:10]) == (1,)
        assert len(data) == 10 + 4 + 2 * 8

    def test_empty_list(self):
        assert read_genotype(io.BytesIO(encode([]))) == []

    def test_bad_magic(self):
        data = b"NOPE" + encode([np.array([1])])[4:]
        with pytest.raises(PersistenceError, match="magic"):
            read_genotype(io.BytesIO(data))

    def test_unsupported_version(self):
        data = bytearray(encode([np.array([1])]))
        data[4:6] = struct.pack("<H", FORMAT_VERSION + 1)
        with pytest.raises(PersistenceError, match="version"):
            read_genotype(io.BytesIO(bytes(data)))

    def test_truncated_stream(self):
        data = encode([np.array([1, 2, 3])])
        with pytest.raises(PersistenceError, match="Truncated"):
            read_genotype(io.BytesIO(data[:-5]))

    def test_truncated_header(self):
        with pytest.raises(PersistenceError):
            read_genotype(io.BytesIO(MAGIC))


class TestGenotypeFile:
    def test_save_and_load(self, tmp_path):
        path = tmp_path / "nested" / "genotype.bin"
        save_genotype(path, [np.array([5, 6]), np.array([-7])])

        assert path.exists()
        assert not path.with_suffix(".bin.tmp").exists()
        assert [g.tolist() for g in load_genotype(path)] == [[5, 6], [-7]]

    def test_overwrite(self, tmp_path):
        path = tmp_path / "genotype.bin"
        save_genotype(path, [np.array([1])])
        save_genotype(path, [np.array([2]), np.array([3])])
        assert len(load_genotype(path)) == 2
