import heapq
import logging
from collections import Counter
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

logger = logging.getLogger("huffman")


# Errors

class HuffmanError(ValueError):
    """Base class for every codec failure."""


class UnknownSymbolError(HuffmanError):
    def __init__(self, symbol):
        super().__init__(f"symbol {symbol!r} is not in the code table")
        self.symbol = symbol


class MissingSymbolCountError(HuffmanError):
    pass


class CorruptStreamError(HuffmanError):
    pass


class TruncatedStreamError(CorruptStreamError):
    pass


# Tree

@dataclass(frozen=True)
class HuffmanNode: # Node for Huffman tree
    frequency: int
    symbol: object = None # byte, character or None for internal nodes
    left: Optional["HuffmanNode"] = None
    right: Optional["HuffmanNode"] = None

    @property
    def is_leaf(self) -> bool:
        return self.left is None and self.right is None

    def leaves(self) -> List["HuffmanNode"]: # left to right
        found = []
        stack = [self]
        while stack:
            node = stack.pop()
            if node.is_leaf:
                found.append(node)
            else:
                stack.append(node.right)
                stack.append(node.left)
        return found

    def internal_nodes(self) -> List["HuffmanNode"]:
        found = []
        stack = [self]
        while stack:
            node = stack.pop()
            if not node.is_leaf:
                found.append(node)
                stack.append(node.right)
                stack.append(node.left)
        return found


def analyze_frequencies(data) -> Dict[object, int]: # data: bytes or str
    return dict(Counter(data))


def build_huffman_tree(frequency_table: Dict[object, int]) -> Optional[HuffmanNode]:
    """
    Greedy Huffman construction over a min-heap.

    Heap entries are (frequency, rank, tie_key, node). Leaves have rank 0 and
    use their symbol as tie_key; internal nodes have rank 1 and use a creation
    sequence number. With equal frequencies leaves therefore come out first
    in ascending symbol order, then internal nodes in the order they were made.
    The first node popped becomes the left child.
    """
    if not frequency_table:
        return None

    priority_queue = [(frequency, 0, symbol, HuffmanNode(frequency, symbol))
                      for symbol, frequency in frequency_table.items()]
    heapq.heapify(priority_queue)

    sequence = 0
    while len(priority_queue) > 1:
        left = heapq.heappop(priority_queue)[3]
        right = heapq.heappop(priority_queue)[3]
        merged = HuffmanNode(left.frequency + right.frequency, None, left, right)
        heapq.heappush(priority_queue, (merged.frequency, 1, sequence, merged))
        sequence += 1

    root = priority_queue[0][3]
    logger.debug("built tree: %d leaves, %d internal nodes, weight %d",
                 len(frequency_table), sequence, root.frequency)
    return root


def generate_huffman_codes(root: Optional[HuffmanNode]) -> Dict[object, str]:
    if root is None:
        return {}
    # A lone leaf has an empty path; give it one bit so the stream is not empty
    if root.is_leaf:
        return {root.symbol: "0"}

    codes = {}
    stack: List[Tuple[HuffmanNode, str]] = [(root, "")]
    while stack:
        node, path = stack.pop()
        if node.is_leaf:
            codes[node.symbol] = path
            continue
        stack.append((node.right, path + "1"))
        stack.append((node.left, path + "0"))
    return codes


def is_prefix_free(code_map: Dict[object, str]) -> bool:
    # after sorting, a prefix always sorts directly before some code it prefixes
    ordered = sorted(code_map.values())
    return all(not b.startswith(a) for a, b in zip(ordered, ordered[1:]))


def huffman_encode(data, code_map: Dict[object, str]) -> str: # data: input to encode, code_map: dict of symbol -> Huffman code
    parts = []
    for symbol in data:
        code = code_map.get(symbol)
        if code is None:
            raise UnknownSymbolError(symbol)
        parts.append(code)
    return "".join(parts)


def huffman_decode(bitstring: str, root: Optional[HuffmanNode], expected_symbol_count: Optional[int] = None) -> list:
    """
    Walk the tree once per symbol, '0' to the left and '1' to the right.

    A tree that is a single leaf cannot be walked, so the caller has to say
    how many symbols were encoded; each of them is one '0' bit.
    """
    if root is None:
        if bitstring:
            raise CorruptStreamError("bits given but the tree is empty")
        return []

    if root.is_leaf:
        if expected_symbol_count is None:
            raise MissingSymbolCountError("a single-symbol tree needs the symbol count to decode")
        if len(bitstring) < expected_symbol_count:
            raise TruncatedStreamError(
                f"expected {expected_symbol_count} bits, got {len(bitstring)}")
        if len(bitstring) > expected_symbol_count or bitstring.strip("0"):
            raise CorruptStreamError("single-symbol stream must be exactly one '0' per symbol")
        return [root.symbol] * expected_symbol_count

    decoded = []
    node = root
    for position, bit in enumerate(bitstring):
        if bit == "0":
            node = node.left
        elif bit == "1":
            node = node.right
        else:
            raise CorruptStreamError(f"invalid bit {bit!r} at position {position}")

        if node.is_leaf: # reached a leaf
            decoded.append(node.symbol)
            node = root

    if node is not root:
        raise TruncatedStreamError(
            f"stream ended inside a code after {len(decoded)} symbols")

    if expected_symbol_count is not None and len(decoded) != expected_symbol_count:
        if len(decoded) < expected_symbol_count:
            raise TruncatedStreamError(
                f"decoded {len(decoded)} symbols, expected {expected_symbol_count}")
        raise CorruptStreamError(
            f"decoded {len(decoded)} symbols, expected {expected_symbol_count}")
    return decoded


def join_symbols(symbols: list, as_bytes: bool):
    return bytes(symbols) if as_bytes else "".join(symbols)


# Facade

@dataclass
class CompressionStats:
    original_bits: int
    compressed_bits: int

    @property
    def ratio(self) -> float: # percent of the original size
        if self.original_bits == 0:
            return 0.0
        return self.compressed_bits / self.original_bits * 100

    @property
    def space_saved(self) -> float:
        if self.original_bits == 0:
            return 0.0
        return 100 - self.ratio


_DISPLAY_NAMES = {" ": "SPACE", "\n": "NEWLINE", "\t": "TAB"}


def display_symbol(symbol) -> str:
    if isinstance(symbol, int):
        char = chr(symbol)
        if char in _DISPLAY_NAMES:
            return _DISPLAY_NAMES[char]
        return char if 0x21 <= symbol < 0x7F else f"0x{symbol:02X}"
    if symbol in _DISPLAY_NAMES:
        return _DISPLAY_NAMES[symbol]
    return symbol if symbol.isprintable() else f"U+{ord(symbol):04X}"


class HuffmanCompressor:
    """
    Runs analyze -> build -> generate -> encode and keeps the tree around
    so the same instance can decompress what it produced.
    """

    def __init__(self):
        self._frequencies: Dict[object, int] = {}
        self._tree: Optional[HuffmanNode] = None
        self._codes: Dict[object, str] = {}
        self._symbol_count = 0
        self._as_bytes = True
        self._compressed_bits = 0
        self._original_bytes = 0

    @property
    def tree(self) -> Optional[HuffmanNode]:
        return self._tree

    @property
    def codes(self) -> Dict[object, str]:
        return dict(self._codes)

    @property
    def frequencies(self) -> Dict[object, int]:
        return dict(self._frequencies)

    @property
    def symbol_count(self) -> int:
        return self._symbol_count

    def compress(self, data) -> str:
        self._as_bytes = not isinstance(data, str)
        self._symbol_count = len(data)
        # text is measured by its UTF-8 size, not one byte per character
        self._original_bytes = len(data.encode("utf-8")) if isinstance(data, str) else len(data)
        if not data:
            self._frequencies, self._tree, self._codes = {}, None, {}
            self._compressed_bits = 0
            return ""

        self._frequencies = analyze_frequencies(data)
        logger.debug("frequency analysis: %d unique symbols in %d", len(self._frequencies), len(data))
        self._tree = build_huffman_tree(self._frequencies)
        self._codes = generate_huffman_codes(self._tree)
        encoded = huffman_encode(data, self._codes)
        self._compressed_bits = len(encoded)
        logger.debug("compressed %d symbols into %d bits", len(data), len(encoded))
        return encoded

    def decompress(self, bitstring: str):
        symbols = huffman_decode(bitstring, self._tree, self._symbol_count)
        return join_symbols(symbols, self._as_bytes)

    def stats(self) -> CompressionStats:
        return CompressionStats(self._original_bytes * 8, self._compressed_bits)

    def code_report(self) -> List[Tuple[str, str, int]]:
        rows = sorted(self._codes.items(), key=lambda item: (len(item[1]), item[1]))
        return [(display_symbol(symbol), code, self._frequencies[symbol]) for symbol, code in rows]
