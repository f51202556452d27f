"""
Binary encoding of an ordered genotype list.

Layout (little-endian):
    magic    4 bytes  b"PLGT"
    version  uint16   FORMAT_VERSION
    count    uint32   number of individuals
    then per individual:
        length  uint32
        genes   int64 * length

Individual order is preserved exactly.
"""

from __future__ import annotations
from pathlib import Path
from typing import BinaryIO, Iterable
import struct

import numpy as np

from ..errors import PersistenceError

MAGIC = b"PLGT"
FORMAT_VERSION = 1

_HEADER = struct.Struct("<4sHI")
_LENGTH = struct.Struct("<I")
_GENE_DTYPE = np.dtype("<i8")


def write_genotype(stream: BinaryIO, individuals: Iterable[np.ndarray]) -> None:
    """Write individuals to a binary stream."""
    individuals = [np.asarray(genes, dtype=_GENE_DTYPE).reshape(-1) for genes in individuals]

    stream.write(_HEADER.pack(MAGIC, FORMAT_VERSION, len(individuals)))
    for genes in individuals:
        stream.write(_LENGTH.pack(len(genes)))
        stream.write(genes.tobytes())


def _read_exact(stream: BinaryIO, size: int) -> bytes:
    data = stream.read(size)
    if len(data) != size:
        raise PersistenceError(f"Truncated genotype stream: wanted {size} bytes, got {len(data)}")
    return data


def read_genotype(stream: BinaryIO) -> list[np.ndarray]:
    """Read individuals written by write_genotype()."""
    magic, version, count = _HEADER.unpack(_read_exact(stream, _HEADER.size))
    if magic != MAGIC:
        raise PersistenceError(f"Not a genotype stream (magic {magic!r})")
    if version != FORMAT_VERSION:
        raise PersistenceError(f"Unsupported genotype format version {version}")

    individuals = []
    for _ in range(count):
        (length,) = _LENGTH.unpack(_read_exact(stream, _LENGTH.size))
        data = _read_exact(stream, length * _GENE_DTYPE.itemsize)
        individuals.append(np.frombuffer(data, dtype=_GENE_DTYPE).astype(np.int64))
    return individuals


def save_genotype(path: Path, individuals: Iterable[np.ndarray]) -> None:
    """Write individuals to a file, replacing it atomically."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_suffix(path.suffix + '.tmp')
    with open(tmp_path, 'wb') as f:
        write_genotype(f, individuals)
    tmp_path.replace(path)


def load_genotype(path: Path) -> list[np.ndarray]:
    with open(path, 'rb') as f:
        return read_genotype(f)
