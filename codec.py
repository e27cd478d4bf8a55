"""
Static Huffman file codec

File layout (no version tag):
  bytes [0, 1024)   256 little-endian unsigned 32-bit counts, byte value 0..255
  bytes [1024, EOF) Huffman codes packed in order, last byte zero padded

The decoder rebuilds the same tree from the stored counts and stops once it has
produced sum(counts) bytes, which is how the pad bits get ignored
"""

import io
import logging
import os
import struct
from dataclasses import dataclass
from typing import BinaryIO, Dict, List, Tuple

from bitio import BitReader, BitWriter
from huffman import (
    ALPHABET_SIZE,
    HuffmanNode,
    build_huffman_tree,
    count_frequencies,
    generate_huffman_codes,
)

logger = logging.getLogger(__name__)

COUNTER_WIDTH = 4
HEADER_SIZE = ALPHABET_SIZE * COUNTER_WIDTH
MAX_COUNT = 2 ** (8 * COUNTER_WIDTH) - 1
HEADER_STRUCT = struct.Struct(f"<{ALPHABET_SIZE}I")

CHUNK_SIZE = 64 * 1024


class HuffmanError(Exception):
    pass


class EmptyInputError(HuffmanError):
    def __init__(self, message: str = "input is empty, nothing to compress"):
        super().__init__(message)


class FormatError(HuffmanError):
    pass


class TruncatedPayloadError(FormatError):
    def __init__(self, decoded: int, expected: int):
        self.decoded = decoded
        self.expected = expected
        super().__init__(f"payload ended early: decoded {decoded} of {expected} symbols")


@dataclass
class CompressionResult:
    original_size: int
    compressed_size: int
    unique_symbols: int
    payload_bits: int
    pad_bits: int

    @property
    def header_size(self) -> int:
        return HEADER_SIZE

    @property
    def compression_ratio(self) -> float:
        return self.compressed_size / max(1, self.original_size)

    @property
    def efficiency(self) -> float:
        # percentage saved, negative when the output grew
        return (1.0 - self.compression_ratio) * 100.0


@dataclass
class DecompressionResult:
    decoded_symbols: int
    expected_symbols: int
    bytes_read: int # header plus every payload byte consumed


# Header

def write_histogram(stream: BinaryIO, histogram: List[int]) -> None:
    if len(histogram) != ALPHABET_SIZE:
        raise ValueError(f"histogram must have {ALPHABET_SIZE} entries, got {len(histogram)}")
    for symbol, count in enumerate(histogram):
        if count > MAX_COUNT:
            raise ValueError(f"count {count} for byte {symbol} does not fit in {COUNTER_WIDTH} bytes")
    stream.write(HEADER_STRUCT.pack(*histogram))

def read_histogram(stream: BinaryIO) -> List[int]:
    raw = stream.read(HEADER_SIZE)
    if len(raw) != HEADER_SIZE:
        raise FormatError(f"header is {len(raw)} bytes, expected {HEADER_SIZE}")
    return list(HEADER_STRUCT.unpack(raw))


# Encoding

def _prepare(src: BinaryIO) -> Tuple[List[int], HuffmanNode, Dict[int, str]]:
    histogram = count_frequencies(src)
    for symbol, count in enumerate(histogram):
        if count > MAX_COUNT:
            raise HuffmanError(f"byte {symbol} occurs {count} times, more than a {COUNTER_WIDTH} byte counter holds")
    root = build_huffman_tree(histogram)
    if root is None:
        raise EmptyInputError()
    return histogram, root, generate_huffman_codes(root)

def _write_encoded(src: BinaryIO, dst: BinaryIO, histogram: List[int], codes: Dict[int, str]) -> CompressionResult:
    write_histogram(dst, histogram)
    writer = BitWriter(dst)
    original_size = 0
    while True:
        chunk = src.read(CHUNK_SIZE)
        if not chunk:
            break
        original_size += len(chunk)
        for byte in chunk:
            code = codes.get(byte)
            if code is None:
                raise RuntimeError(f"no code for byte {byte}, input changed between passes")
            writer.write_code(code)
    if original_size != sum(histogram):
        raise HuffmanError(f"input changed between passes: counted {sum(histogram)} bytes, encoded {original_size}")
    pad_bits = writer.flush()

    return CompressionResult(
        original_size=original_size,
        compressed_size=HEADER_SIZE + writer.bytes_written,
        unique_symbols=len(codes),
        payload_bits=writer.bits_written,
        pad_bits=pad_bits,
    )

def encode_stream(src: BinaryIO, dst: BinaryIO) -> CompressionResult:
    """
    Compress everything from src's current position into dst.
    src must be seekable since it is read twice.
    Raises EmptyInputError, before anything is written, when src has no bytes
    """
    histogram, _, codes = _prepare(src)
    return _write_encoded(src, dst, histogram, codes)

def compress(input_path, output_path) -> CompressionResult:
    with open(input_path, "rb") as src:
        if os.path.exists(output_path) and os.path.samefile(input_path, output_path):
            raise HuffmanError(f"input and output are the same file: {input_path}")
        histogram, _, codes = _prepare(src)
        with open(output_path, "wb") as dst:
            result = _write_encoded(src, dst, histogram, codes)
    logger.info("Compressed %s (%d bytes) -> %s (%d bytes)",
                input_path, result.original_size, output_path, result.compressed_size)
    return result

def compress_bytes(data: bytes) -> bytes:
    out = io.BytesIO()
    encode_stream(io.BytesIO(data), out)
    return out.getvalue()


# Decoding

def _read_tree(src: BinaryIO) -> Tuple[HuffmanNode, int]:
    histogram = read_histogram(src)
    expected = sum(histogram)
    if expected == 0:
        raise FormatError("header records zero symbols")
    root = build_huffman_tree(histogram)
    if root is None:
        raise FormatError("unable to build Huffman tree from header")
    return root, expected

def _decode_payload(src: BinaryIO, dst: BinaryIO, root: HuffmanNode, expected: int) -> DecompressionResult:
    reader = BitReader(src)
    out = bytearray()
    node = root
    decoded = 0

    try:
        while decoded < expected:
            bit = reader.read_bit()
            if bit is None:
                break
            node = node.right if bit == 1 else node.left
            if node is None:
                raise FormatError(f"invalid bit sequence after {decoded} symbols")

            # Leaf
            if node.is_leaf():
                out.append(node.symbol)
                node = root
                decoded += 1
                if len(out) >= CHUNK_SIZE:
                    dst.write(out)
                    out.clear()
    finally:
        dst.write(out)

    if decoded < expected:
        raise TruncatedPayloadError(decoded, expected)
    logger.debug("Decoded %d symbols from %d payload bytes", decoded, reader.bytes_read)
    return DecompressionResult(decoded, expected, HEADER_SIZE + reader.bytes_read)

def decode_stream(src: BinaryIO, dst: BinaryIO) -> DecompressionResult:
    root, expected = _read_tree(src)
    return _decode_payload(src, dst, root, expected)

def decompress(input_path, output_path) -> DecompressionResult:
    with open(input_path, "rb") as src:
        if os.path.exists(output_path) and os.path.samefile(input_path, output_path):
            raise HuffmanError(f"input and output are the same file: {input_path}")
        root, expected = _read_tree(src)
        with open(output_path, "wb") as dst:
            result = _decode_payload(src, dst, root, expected)
    logger.info("Decompressed %s -> %s (%d symbols)", input_path, output_path, result.decoded_symbols)
    return result

def decompress_bytes(blob: bytes) -> bytes:
    out = io.BytesIO()
    decode_stream(io.BytesIO(blob), out)
    return out.getvalue()
