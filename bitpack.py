from typing import Tuple

from huffman import CorruptStreamError


def pack_bits(bitstring: str) -> Tuple[bytes, int]:
    """
    Converts a string of '0'/'1' into packed bytes, most significant bit first
    Returns (packed_bytes, pad_bits) where pad_bits is number of 0 bits added at the end
    """
    out = bytearray()
    acc = 0
    acc_bits = 0

    for ch in bitstring:
        if ch not in "01":
            raise CorruptStreamError(f"invalid bit {ch!r}")
        acc = (acc << 1) | (1 if ch == '1' else 0)
        acc_bits += 1
        if acc_bits == 8:
            out.append(acc)
            acc = 0
            acc_bits = 0

    pad_bits = 0
    if acc_bits != 0:
        pad_bits = 8 - acc_bits
        out.append((acc << pad_bits) & 0xFF)

    return bytes(out), pad_bits


def unpack_bits(packed: bytes, pad_bits: int) -> str:
    if not 0 <= pad_bits <= 7:
        raise CorruptStreamError(f"pad bit count {pad_bits} out of range")
    if pad_bits and not packed:
        raise CorruptStreamError("padding declared for an empty payload")
    if pad_bits and packed[-1] & ((1 << pad_bits) - 1):
        raise CorruptStreamError("padding bits are not zero")

    bits = "".join(format(byte, "08b") for byte in packed)
    return bits[:len(bits) - pad_bits]
