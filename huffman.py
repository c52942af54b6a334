import heapq
import sys
from collections import Counter
from itertools import count
from typing import Dict, Hashable, Iterable, List, Mapping, Tuple, Union

from loguru import logger

# Silent until an entry point opts in through configure_logging
logger.disable(__name__)


def configure_logging(level: str) -> None:
    logger.remove()
    logger.add(sys.stderr, level=level.upper())
    logger.enable(__name__)


class HuffmanError(Exception):
    """Base class for every failure raised by the coder."""


class EmptyAlphabetError(HuffmanError, ValueError):
    def __init__(self):
        super().__init__("cannot build a Huffman tree over an empty alphabet")


class UnknownSymbolError(HuffmanError, LookupError):
    def __init__(self, symbol, position: int):
        self.symbol = symbol
        self.position = position
        super().__init__(f"symbol {symbol!r} at position {position} has no code")


class TruncatedInputError(HuffmanError, ValueError):
    def __init__(self, bits_consumed: int, symbols_decoded: int):
        self.bits_consumed = bits_consumed
        self.symbols_decoded = symbols_decoded
        super().__init__(
            f"bitstring ended inside a code after {bits_consumed} bits "
            f"({symbols_decoded} symbols decoded)"
        )


class InvalidBitError(HuffmanError, ValueError):
    def __init__(self, bit, position: int, reason: str = "not a binary digit"):
        self.bit = bit
        self.position = position
        super().__init__(f"bit {bit!r} at position {position}: {reason}")


class HuffmanNode: # Node for Huffman tree
    def __init__(self, symbol, frequency, left=None, right=None):
        self.symbol = symbol # meaningful on leaves only
        self.frequency = frequency # leaf count, or sum of both children
        self.left = left
        self.right = right

    @property
    def is_leaf(self) -> bool:
        return self.left is None and self.right is None

    def __repr__(self):
        if self.is_leaf:
            return f"HuffmanNode({self.symbol!r}, {self.frequency})"
        return f"HuffmanNode(<internal>, {self.frequency})"


WeightedLeaves = Union[Mapping[Hashable, int], Iterable[Tuple[Hashable, int]]]


def merge(left: HuffmanNode, right: HuffmanNode) -> HuffmanNode:
    return HuffmanNode(None, left.frequency + right.frequency, left, right)


def frequency_table(symbols: Iterable[Hashable]) -> Dict[Hashable, int]:
    return dict(Counter(symbols))


def _leaves(weighted_leaves: WeightedLeaves) -> List[HuffmanNode]:
    pairs = weighted_leaves.items() if isinstance(weighted_leaves, Mapping) else weighted_leaves
    leaves = []
    seen = set()
    for symbol, frequency in pairs:
        if isinstance(frequency, bool) or not isinstance(frequency, int) or frequency <= 0:
            raise ValueError(f"frequency of {symbol!r} must be a positive integer, got {frequency!r}")
        if symbol in seen:
            raise ValueError(f"symbol {symbol!r} appears more than once")
        seen.add(symbol)
        leaves.append(HuffmanNode(symbol, frequency))
    if not leaves:
        raise EmptyAlphabetError()
    return leaves


def build_huffman_tree(weighted_leaves: WeightedLeaves) -> HuffmanNode:
    """
    Build an optimal prefix-code tree with a min-heap.

    Accepts a mapping of symbol -> frequency or an iterable of
    (symbol, frequency) pairs. Equal weights are taken in insertion order,
    so the same input always gives the same tree. A one-symbol alphabet
    returns its leaf as the root.
    """
    leaves = _leaves(weighted_leaves)
    order = count() # tie-break, keeps heapq from ever comparing nodes
    priority_queue = [(leaf.frequency, next(order), leaf) for leaf in leaves]
    heapq.heapify(priority_queue)

    while len(priority_queue) > 1:
        _, _, left = heapq.heappop(priority_queue)
        _, _, right = heapq.heappop(priority_queue)
        merged_node = merge(left, right)
        heapq.heappush(priority_queue, (merged_node.frequency, next(order), merged_node))

    root = priority_queue[0][2]
    logger.debug("Built Huffman tree over {} symbols, total weight {}", len(leaves), root.frequency)
    return root


def build_huffman_tree_linear(weighted_leaves: WeightedLeaves) -> HuffmanNode:
    """Quadratic construction: scan for the two lightest nodes on every merge."""
    nodes = _leaves(weighted_leaves)
    symbol_count = len(nodes)

    def pop_lightest() -> HuffmanNode:
        lightest = 0
        for i in range(1, len(nodes)):
            if nodes[i].frequency < nodes[lightest].frequency:
                lightest = i
        return nodes.pop(lightest)

    while len(nodes) > 1:
        left = pop_lightest()
        right = pop_lightest()
        nodes.append(merge(left, right))

    logger.debug("Built Huffman tree (linear scan) over {} symbols", symbol_count)
    return nodes[0]


def generate_huffman_codes(root: HuffmanNode) -> Dict[Hashable, str]:
    # A lone leaf would get the empty path; give it "0" so every code has a bit
    if root.is_leaf:
        return {root.symbol: '0'}

    codes = {}
    def generate_codes_helper(node, current_code):
        if node.is_leaf:
            codes[node.symbol] = current_code
            return

        generate_codes_helper(node.left, current_code + '0')
        generate_codes_helper(node.right, current_code + '1')

    generate_codes_helper(root, '')
    logger.opt(lazy=True).debug(
        "Generated {} codes, longest is {} bits", lambda: len(codes), lambda: max(len(c) for c in codes.values())
    )
    return codes


def huffman_encode(symbols: Iterable[Hashable], code_map: Mapping[Hashable, str]) -> str:
    bits = []
    for position, symbol in enumerate(symbols):
        try:
            bits.append(code_map[symbol])
        except KeyError:
            raise UnknownSymbolError(symbol, position) from None
    return ''.join(bits)


def huffman_decode(bitstring: str, root: HuffmanNode) -> List[Hashable]:
    """
    Walk the tree one bit at a time, emitting a symbol at every leaf.

    Raises TruncatedInputError if the bits stop partway down a code and
    InvalidBitError on anything other than '0' or '1'.
    """
    decoded = []

    if root.is_leaf: # every code is "0"
        for position, bit in enumerate(bitstring):
            if bit != '0':
                reason = "no branch in a single-symbol tree" if bit == '1' else "not a binary digit"
                raise InvalidBitError(bit, position, reason)
            decoded.append(root.symbol)
        return decoded

    current_node = root
    for position, bit in enumerate(bitstring):
        if bit == '0':
            current_node = current_node.left
        elif bit == '1':
            current_node = current_node.right
        else:
            raise InvalidBitError(bit, position)

        if current_node.is_leaf:
            decoded.append(current_node.symbol)
            current_node = root

    if current_node is not root:
        raise TruncatedInputError(len(bitstring), len(decoded))
    return decoded


def encoded_bit_length(frequencies: Mapping[Hashable, int], code_map: Mapping[Hashable, str]) -> int:
    return sum(frequency * len(code_map[symbol]) for symbol, frequency in frequencies.items())


def format_tree(root: HuffmanNode) -> str:
    # (symbol:weight) for leaves, (*:weight left right) for internal nodes
    if root.is_leaf:
        return f"({root.symbol!r}:{root.frequency})"
    return f"(*:{root.frequency} {format_tree(root.left)} {format_tree(root.right)})"
