import logging
from typing import BinaryIO, Dict, List, Optional

logger = logging.getLogger(__name__)

ALPHABET_SIZE = 256
MAX_CODE_LENGTH = 256 # tree height can never exceed the alphabet size

class HuffmanNode: # Node for Huffman tree
    def __init__(self, symbol, frequency, left=None, right=None):
        self.symbol = symbol    # byte or None
        self.frequency = frequency
        self.left = left
        self.right = right

    def is_leaf(self) -> bool:
        return self.left is None and self.right is None

    def __repr__(self):
        if self.is_leaf():
            return f"HuffmanNode(symbol={self.symbol}, frequency={self.frequency})"
        return f"HuffmanNode(frequency={self.frequency})"


class PriorityList:
    """
    Nodes kept in ascending frequency order.
    Equal frequencies keep insertion order: a new node goes after every node
    already in the list with the same frequency, so the merge order (and
    therefore every code) is the same on the compress and decompress side
    """

    def __init__(self):
        self._items: List[HuffmanNode] = []

    def __len__(self):
        return len(self._items)

    def insert(self, node: HuffmanNode) -> None:
        index = 0
        while index < len(self._items) and self._items[index].frequency <= node.frequency:
            index += 1
        self._items.insert(index, node)

    def pop_front(self) -> HuffmanNode:
        return self._items.pop(0)


def count_frequencies(stream: BinaryIO, chunk_size: int = 64 * 1024) -> List[int]:
    """
    Read the whole stream once and count every byte value.
    The read position is moved back to where it started so the caller can
    make a second pass over the same bytes
    """
    start = stream.tell()
    histogram = [0] * ALPHABET_SIZE
    while True:
        chunk = stream.read(chunk_size)
        if not chunk:
            break
        for byte in chunk:
            histogram[byte] += 1
    stream.seek(start)
    return histogram

def frequency_table(data: bytes) -> List[int]:
    histogram = [0] * ALPHABET_SIZE
    for byte in data:
        histogram[byte] += 1
    return histogram

def build_huffman_tree(histogram) -> Optional[HuffmanNode]: # histogram: 256 counts indexed by byte value
    if len(histogram) != ALPHABET_SIZE:
        raise ValueError(f"histogram must have {ALPHABET_SIZE} entries, got {len(histogram)}")

    queue = PriorityList()
    for symbol, frequency in enumerate(histogram): # ascending byte order keeps ties deterministic
        if frequency < 0:
            raise ValueError(f"negative count {frequency} for byte {symbol}")
        if frequency > 0:
            queue.insert(HuffmanNode(symbol, frequency))

    if len(queue) == 0:
        return None # nothing to encode

    # One distinct byte: wrap the leaf in a root with no right child so its code is "0"
    if len(queue) == 1:
        leaf = queue.pop_front()
        return HuffmanNode(None, leaf.frequency, left=leaf)

    # Build the tree
    while len(queue) > 1:
        left = queue.pop_front()
        right = queue.pop_front()
        merged_node = HuffmanNode(None, left.frequency + right.frequency, left, right) # internal node with combined frequency
        queue.insert(merged_node)

    root = queue.pop_front() # list is drained, root is the only survivor
    logger.debug("Built Huffman tree of weight %d", root.frequency)
    return root

def generate_huffman_codes(root) -> Dict[int, str]: # root: root of the Huffman tree
    codes: Dict[int, str] = {}
    def generate_codes_helper(node, current_code): # each call gets its own copy of the path so far
        if node is None:
            return

        if len(current_code) > MAX_CODE_LENGTH:
            raise RuntimeError(f"code length exceeds {MAX_CODE_LENGTH} bits")

        # Leaf node -> assign code
        if node.is_leaf():
            if not current_code:
                raise RuntimeError(f"byte {node.symbol} would get an empty code")
            codes[node.symbol] = current_code
            return

        generate_codes_helper(node.left, current_code + '0')
        generate_codes_helper(node.right, current_code + '1')

    generate_codes_helper(root, '')
    logger.debug("Generated %d codes", len(codes))
    return codes # return the mapping of symbols to their corresponding Huffman codes

def walk_code(root: HuffmanNode, code: str) -> Optional[HuffmanNode]:
    """Follow a bit string from the root, returning the node it ends on or None if it leaves the tree."""
    node = root
    for bit in code:
        node = node.right if bit == '1' else node.left
        if node is None:
            return None
    return node

def code_lengths(code_map: Dict[int, str]) -> Dict[int, int]:
    return {symbol: len(code) for symbol, code in code_map.items()}
