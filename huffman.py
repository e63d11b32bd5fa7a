import heapq
from collections import Counter
from typing import Dict, List, Optional, Tuple

LEAF = 0
INTERNAL = 1


class HuffmanNode:
    """Node for a static binary Huffman tree.

    Nodes are totally ordered by ``(freq, symbol, kind)``. For internal nodes
    ``symbol`` holds the smallest byte value found in the subtree, so equal
    frequencies are resolved the same way on every run and platform.

    :ivar symbol: Byte value stored at a leaf, or the smallest byte value
        below an internal node.
    :type symbol: int
    :ivar freq: Frequency (weight) of the subtree rooted at this node.
    :type freq: int
    :ivar left: Left child node, ``None`` for leaves.
    :type left: HuffmanNode | None
    :ivar right: Right child node, ``None`` for leaves.
    :type right: HuffmanNode | None
    """

    def __init__(self, symbol: int, freq: int, left=None, right=None):
        """Create a Huffman node.

        :param int symbol: Byte value for leaves; smallest subtree byte value
            for internal nodes.
        :param int freq: Frequency (weight) associated with this node.
        :param left: Left child node, if any.
        :type left: HuffmanNode|None
        :param right: Right child node, if any.
        :type right: HuffmanNode|None
        :returns: None
        :rtype: None
        """
        self.symbol = symbol
        self.freq = freq
        self.left = left
        self.right = right

    @classmethod
    def merge(cls, left: "HuffmanNode", right: "HuffmanNode") -> "HuffmanNode":
        """Create the internal node owning ``left`` and ``right``.

        :param left: Child reached with a ``0`` bit.
        :type left: HuffmanNode
        :param right: Child reached with a ``1`` bit.
        :type right: HuffmanNode
        :returns: New internal node weighing ``left.freq + right.freq``.
        :rtype: HuffmanNode
        """
        return cls(
            symbol=min(left.symbol, right.symbol),
            freq=left.freq + right.freq,
            left=left,
            right=right,
        )

    @property
    def is_leaf(self) -> bool:
        """Whether this node has no children.

        :returns: ``True`` for leaves.
        :rtype: bool
        """
        return self.left is None and self.right is None

    @property
    def sort_key(self) -> Tuple[int, int, int]:
        """Priority of this node in the merge queue.

        :returns: Tuple ``(freq, symbol, kind)``, leaves before internal nodes.
        :rtype: Tuple[int, int, int]
        """
        return self.freq, self.symbol, LEAF if self.is_leaf else INTERNAL

    def __lt__(self, other):
        """Order nodes for the priority queue.

        :param other: Another node to compare with.
        :type other: HuffmanNode
        :returns: ``True`` if this node sorts before ``other``.
        :rtype: bool
        """
        return self.sort_key < other.sort_key

    def __repr__(self):
        """Describe the node and, for internal nodes, its subtree.

        :returns: Debug representation.
        :rtype: str
        """
        if self.is_leaf:
            return f"HuffmanNode(symbol={self.symbol}, freq={self.freq})"
        return f"HuffmanNode(freq={self.freq}, left={self.left!r}, right={self.right!r})"


def count_frequencies(data: bytes) -> Dict[int, int]:
    """Count how often each byte value occurs in ``data``.

    :param data: Input bytes, possibly empty.
    :type data: bytes
    :returns: Mapping from byte value to occurrence count.
    :rtype: Dict[int, int]
    """
    return dict(Counter(data))


def build_tree(frequencies: Dict[int, int]) -> Optional[HuffmanNode]:
    """Build a Huffman tree from a byte frequency table.

    The two lowest nodes are repeatedly merged, the first one popped becoming
    the left child. A table with a single byte value yields a lone leaf.

    :param frequencies: Mapping from byte value to frequency.
    :type frequencies: Dict[int, int]
    :returns: Root of the tree, or ``None`` if ``frequencies`` is empty.
    :rtype: HuffmanNode | None
    """
    if not frequencies:
        return None

    heap = [HuffmanNode(symbol=sym, freq=freq) for sym, freq in frequencies.items()]
    heapq.heapify(heap)

    while len(heap) > 1:
        left = heapq.heappop(heap)
        right = heapq.heappop(heap)
        heapq.heappush(heap, HuffmanNode.merge(left, right))

    return heap[0]


def generate_codes(root: Optional[HuffmanNode]) -> Dict[int, str]:
    """Assign each leaf its root-to-leaf path as a ``'0'``/``'1'`` string.

    Walks the tree with an explicit stack, so very skewed trees do not hit
    the recursion limit. A root that is itself a leaf gets the code ``"0"``.

    :param root: Tree root, or ``None``.
    :type root: HuffmanNode | None
    :returns: Mapping from byte value to code.
    :rtype: Dict[int, str]
    """
    codes: Dict[int, str] = {}
    if root is None:
        return codes
    if root.is_leaf:
        codes[root.symbol] = "0"
        return codes

    stack: List[Tuple[HuffmanNode, str]] = [(root, "")]
    while stack:
        node, prefix = stack.pop()
        if node.is_leaf:
            codes[node.symbol] = prefix
            continue
        # right first so the left subtree is visited first
        stack.append((node.right, prefix + "1"))
        stack.append((node.left, prefix + "0"))
    return codes


def build_code_table(data: bytes) -> Dict[int, str]:
    """Build the code table for ``data`` in one step.

    Shortcut for ``generate_codes(build_tree(count_frequencies(data)))``.

    :param data: Input bytes, possibly empty.
    :type data: bytes
    :returns: Mapping from byte value to code; empty for empty ``data``.
    :rtype: Dict[int, str]
    """
    return generate_codes(build_tree(count_frequencies(data)))


def is_prefix_free(codes: Dict[int, str]) -> bool:
    """Check that no code is a prefix of another (or equal to it).

    After sorting, any code that is a prefix of another sits directly
    before one of the codes it prefixes.

    :param codes: Mapping from byte value to code.
    :type codes: Dict[int, str]
    :rtype: bool
    """
    ordered = sorted(codes.values())
    for shorter, longer in zip(ordered, ordered[1:]):
        if longer.startswith(shorter):
            return False
    return True
