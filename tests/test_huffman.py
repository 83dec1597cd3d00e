import random

import pytest

from huffman import (CorruptStreamError, HuffmanCompressor, HuffmanNode,
                     MissingSymbolCountError, TruncatedStreamError,
                     UnknownSymbolError, analyze_frequencies, build_huffman_tree,
                     display_symbol, generate_huffman_codes, huffman_decode,
                     huffman_encode, is_prefix_free)


def _pipeline(data):
    root = build_huffman_tree(analyze_frequencies(data))
    codes = generate_huffman_codes(root)
    return root, codes, huffman_encode(data, codes)


SAMPLES = [
    "ABRACADABRA",
    "AB",
    "mississippi river",
    "The quick brown fox jumps over the lazy dog.",
    b"\x00\x00\x01\xff\x00",
    bytes(range(256)),
    bytes(random.Random(7).getrandbits(8) for _ in range(4096)),
]


def test_analyze_counts_every_symbol():
    assert analyze_frequencies("ABRACADABRA") == {"A": 5, "B": 2, "R": 2, "C": 1, "D": 1}
    assert analyze_frequencies(b"aab") == {97: 2, 98: 1}
    assert analyze_frequencies("") == {}


def test_build_empty_table_returns_none():
    assert build_huffman_tree({}) is None
    assert generate_huffman_codes(None) == {}


@pytest.mark.parametrize("data", SAMPLES)
def test_roundtrip(data):
    root, codes, bits = _pipeline(data)
    assert huffman_decode(bits, root) == list(data)
    assert huffman_decode(bits, root, len(data)) == list(data)


@pytest.mark.parametrize("data", SAMPLES)
def test_codes_are_prefix_free(data):
    _, codes, _ = _pipeline(data)
    assert is_prefix_free(codes)
    assert all(codes.values())


def test_is_prefix_free_detects_prefix():
    assert not is_prefix_free({"a": "0", "b": "01", "c": "11"})
    assert is_prefix_free({"a": "0", "b": "10", "c": "11"})


@pytest.mark.parametrize("data", SAMPLES)
def test_tree_shape_and_frequency_conservation(data):
    root, _, _ = _pipeline(data)
    leaves = root.leaves()
    distinct = len(set(data))
    assert len(leaves) == distinct
    assert len(root.internal_nodes()) == distinct - 1
    assert sum(leaf.frequency for leaf in leaves) == len(data)
    assert root.frequency == len(data)
    for node in root.internal_nodes():
        assert node.frequency == node.left.frequency + node.right.frequency


def test_build_is_deterministic():
    table = analyze_frequencies("the rain in spain stays mainly in the plain")
    reordered = dict(reversed(list(table.items())))
    first = build_huffman_tree(table)
    second = build_huffman_tree(reordered)
    assert first == second
    assert generate_huffman_codes(first) == generate_huffman_codes(second)


def test_tie_break_prefers_leaves_then_smaller_symbols():
    # a and b merge first; c (leaf) beats the internal node of equal weight
    root = build_huffman_tree({"b": 1, "c": 2, "a": 1})
    assert generate_huffman_codes(root) == {"c": "0", "a": "10", "b": "11"}


def test_tie_break_merges_internal_nodes_in_creation_order():
    # (a, b) is merged before (c, d), so it comes out first and goes left
    root = build_huffman_tree({"d": 1, "c": 1, "b": 1, "a": 1})
    assert root.left == HuffmanNode(2, None, HuffmanNode(1, "a"), HuffmanNode(1, "b"))
    assert generate_huffman_codes(root) == {"a": "00", "b": "01", "c": "10", "d": "11"}


def test_abracadabra_known_codes():
    root, codes, bits = _pipeline("ABRACADABRA")
    assert codes == {"A": "0", "C": "100", "D": "101", "B": "110", "R": "111"}
    assert bits == "".join(codes[c] for c in "ABRACADABRA")
    assert len(bits) == 23
    assert len(bits) < 11 * 8
    assert "".join(huffman_decode(bits, root)) == "ABRACADABRA"


def test_single_symbol_degenerate_case():
    table = analyze_frequencies("AAAA")
    assert table == {"A": 4}
    root = build_huffman_tree(table)
    assert root == HuffmanNode(4, "A")
    assert root.is_leaf
    codes = generate_huffman_codes(root)
    assert codes == {"A": "0"}
    bits = huffman_encode("AAAA", codes)
    assert bits == "0000"
    assert "".join(huffman_decode(bits, root, 4)) == "AAAA"


def test_single_symbol_requires_count():
    root = build_huffman_tree({"A": 4})
    with pytest.raises(MissingSymbolCountError):
        huffman_decode("0000", root)


def test_single_symbol_bad_bit_counts():
    root = build_huffman_tree({"A": 4})
    with pytest.raises(TruncatedStreamError):
        huffman_decode("000", root, 4)
    with pytest.raises(CorruptStreamError):
        huffman_decode("00000", root, 4)
    with pytest.raises(CorruptStreamError):
        huffman_decode("0010", root, 4)


def test_unknown_symbol():
    codes = generate_huffman_codes(build_huffman_tree(analyze_frequencies("ABC")))
    with pytest.raises(UnknownSymbolError) as excinfo:
        huffman_encode("ABZ", codes)
    assert excinfo.value.symbol == "Z"


def test_truncated_stream():
    root, _, bits = _pipeline("ABRACADABR")
    with pytest.raises(TruncatedStreamError):
        huffman_decode(bits[:-1], root)


def test_symbol_count_mismatch():
    root, _, bits = _pipeline("ABRACADABRA")
    # the final "A" is a single bit, so dropping it ends on the root
    with pytest.raises(TruncatedStreamError):
        huffman_decode(bits[:-1], root, 11)
    with pytest.raises(CorruptStreamError):
        huffman_decode(bits + "0", root, 11)


def test_invalid_bit_character():
    root, _, _ = _pipeline("AB")
    with pytest.raises(CorruptStreamError):
        huffman_decode("01x", root)


def test_empty_tree_decode():
    assert huffman_decode("", None) == []
    with pytest.raises(CorruptStreamError):
        huffman_decode("0", None)


def test_compressor_roundtrip_keeps_input_type():
    c = HuffmanCompressor()
    bits = c.compress(b"hello world")
    assert c.decompress(bits) == b"hello world"

    bits = c.compress("hello world")
    assert c.decompress(bits) == "hello world"


def test_compressor_single_symbol():
    c = HuffmanCompressor()
    bits = c.compress(b"A" * 1024)
    assert bits == "0" * 1024
    assert c.decompress(bits) == b"A" * 1024


def test_compressor_empty_input_short_circuits():
    c = HuffmanCompressor()
    c.compress("abc")
    assert c.compress("") == ""
    assert c.tree is None
    assert c.codes == {}
    assert c.decompress("") == ""
    assert c.stats().ratio == 0.0


def test_compressor_accessors_are_copies():
    c = HuffmanCompressor()
    c.compress("ABRACADABRA")
    c.codes["A"] = "1"
    c.frequencies["A"] = 0
    assert c.codes["A"] == "0"
    assert c.frequencies["A"] == 5
    assert c.symbol_count == 11
    assert c.tree.frequency == 11


def test_compressor_stats():
    c = HuffmanCompressor()
    c.compress("ABRACADABRA")
    stats = c.stats()
    assert stats.original_bits == 88
    assert stats.compressed_bits == 23
    assert stats.ratio == pytest.approx(23 / 88 * 100)
    assert stats.space_saved == pytest.approx(100 - 23 / 88 * 100)


def test_compressor_stats_counts_utf8_bytes():
    c = HuffmanCompressor()
    c.compress("ééé")
    assert c.symbol_count == 3
    assert c.stats().original_bits == 48
    assert c.stats().compressed_bits == 3


def test_code_report_order_and_names():
    c = HuffmanCompressor()
    c.compress("a a\n")
    report = c.code_report()
    assert report[0] == ("a", "0", 2)
    assert {name for name, _, _ in report} == {"a", "SPACE", "NEWLINE"}


@pytest.mark.parametrize("symbol,name", [
    (32, "SPACE"), (ord("\t"), "TAB"), (65, "A"), (0, "0x00"), (0xFF, "0xFF"),
    ("\n", "NEWLINE"), ("é", "é"), ("\x07", "U+0007"),
])
def test_display_symbol(symbol, name):
    assert display_symbol(symbol) == name
