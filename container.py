"""
.huf container: everything needed to rebuild the decoding tree plus the
packed bit payload.

    magic      4 bytes   b"HUF1"
    kind       uint8     0 = byte symbols, 1 = text symbols
    pad_bits   uint8
    count      uint64    number of encoded symbols
    entries    uint32
    entry*     uint32 symbol, uint64 frequency
    payload    packed bits

All integers are big-endian. The tree is rebuilt from the frequency table,
which gives the same tree as at compression time because tree building is
deterministic.
"""

import logging
import struct
from pathlib import Path
from typing import Dict, Union

from bitpack import pack_bits, unpack_bits
from huffman import (CorruptStreamError, HuffmanCompressor, build_huffman_tree,
                     huffman_decode, join_symbols)

logger = logging.getLogger("huffman.container")

MAGIC = b"HUF1"
KIND_BYTES = 0
KIND_TEXT = 1

_HEADER = struct.Struct(">4sBBQI")
_ENTRY = struct.Struct(">IQ")


def to_bytes(data: Union[bytes, str]) -> bytes:
    compressor = HuffmanCompressor()
    bits = compressor.compress(data)
    payload, pad_bits = pack_bits(bits)
    kind = KIND_TEXT if isinstance(data, str) else KIND_BYTES

    frequencies = compressor.frequencies
    out = bytearray(_HEADER.pack(MAGIC, kind, pad_bits, compressor.symbol_count, len(frequencies)))
    for symbol, frequency in sorted(frequencies.items()):
        out += _ENTRY.pack(symbol if kind == KIND_BYTES else ord(symbol), frequency)
    out += payload

    logger.debug("container: %d symbols, %d table entries, %d payload bytes",
                 compressor.symbol_count, len(frequencies), len(payload))
    return bytes(out)


def _read_table(blob: bytes, kind: int, entries: int) -> Dict[object, int]:
    table = {}
    offset = _HEADER.size
    for _ in range(entries):
        symbol, frequency = _ENTRY.unpack_from(blob, offset)
        offset += _ENTRY.size
        if kind == KIND_BYTES:
            if symbol > 0xFF:
                raise CorruptStreamError(f"byte symbol {symbol} out of range")
        else:
            try:
                symbol = chr(symbol)
            except (ValueError, OverflowError) as e:
                raise CorruptStreamError(f"invalid code point {symbol}") from e
        if symbol in table or frequency == 0:
            raise CorruptStreamError(f"bad frequency entry for {symbol!r}")
        table[symbol] = frequency
    return table


def from_bytes(blob: bytes) -> Union[bytes, str]:
    if len(blob) < _HEADER.size:
        raise CorruptStreamError("container shorter than its header")
    magic, kind, pad_bits, count, entries = _HEADER.unpack_from(blob)
    if magic != MAGIC:
        raise CorruptStreamError(f"bad magic {magic!r}")
    if kind not in (KIND_BYTES, KIND_TEXT):
        raise CorruptStreamError(f"unknown symbol kind {kind}")

    payload_offset = _HEADER.size + entries * _ENTRY.size
    if len(blob) < payload_offset:
        raise CorruptStreamError("container ends inside the frequency table")

    table = _read_table(blob, kind, entries)
    if sum(table.values()) != count:
        raise CorruptStreamError(
            f"frequency table sums to {sum(table.values())}, header says {count}")

    bits = unpack_bits(blob[payload_offset:], pad_bits)
    symbols = huffman_decode(bits, build_huffman_tree(table), count)
    return join_symbols(symbols, kind == KIND_BYTES)


def write_archive(path, data: Union[bytes, str]) -> int:
    blob = to_bytes(data)
    Path(path).write_bytes(blob)
    logger.info("wrote %s (%d bytes)", path, len(blob))
    return len(blob)


def read_archive(path) -> Union[bytes, str]:
    blob = Path(path).read_bytes()
    logger.info("read %s (%d bytes)", path, len(blob))
    return from_bytes(blob)
