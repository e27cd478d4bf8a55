"""
Command line front end for the Huffman file codec

How to run:
  python huffpress.py encode document.txt compressed.huf
  python huffpress.py decode compressed.huf restored.txt
  python huffpress.py test document.txt compressed.huf restored.txt
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

import codec

logger = logging.getLogger(__name__)

COMPARE_CHUNK = 64 * 1024


def print_compression_stats(result: codec.CompressionResult) -> None:
    print(f"Original size: {result.original_size} bytes")
    print(f"Size after compression: {result.compressed_size} bytes")
    print(f"Compression ratio: {result.compression_ratio:.2f}")
    print(f"Compression efficiency: {result.efficiency:.1f}%")


def files_identical(first: Path, second: Path) -> bool:
    with open(first, "rb") as a, open(second, "rb") as b:
        while True:
            chunk_a = a.read(COMPARE_CHUNK)
            chunk_b = b.read(COMPARE_CHUNK)
            if chunk_a != chunk_b:
                return False
            if not chunk_a:
                return True


def run_encode(source: Path, target: Path, quiet: bool = False) -> int:
    try:
        result = codec.compress(source, target)
    except codec.EmptyInputError:
        print(f"ERROR: {source} is empty, nothing to compress", file=sys.stderr)
        return 1
    except codec.HuffmanError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1
    except OSError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1
    if not quiet:
        print_compression_stats(result)
        print(f"Compression completed. The result is saved in {target}")
    return 0


def run_decode(source: Path, target: Path, quiet: bool = False) -> int:
    try:
        result = codec.decompress(source, target)
    except codec.TruncatedPayloadError as e:
        print(f"ERROR: {source} is truncated", file=sys.stderr)
        print(f"Symbols decoded: {e.decoded} of {e.expected}", file=sys.stderr)
        return 1
    except codec.FormatError as e:
        print(f"ERROR: invalid compressed file {source}: {e}", file=sys.stderr)
        return 1
    except codec.HuffmanError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1
    except OSError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1
    if not quiet:
        print(f"Recovery completed. The result is saved in {target}")
        print(f"Symbols decoded: {result.decoded_symbols} of {result.expected_symbols}")
    return 0


def validate_round_trip(original: Path, compressed: Path, recovered: Path, quiet: bool = False) -> bool:
    """Compress, decompress and compare the recovered file with the original byte for byte."""
    if not quiet:
        print(f"Running a compression cycle test on {original}")
        print("1. Compressing...")
    if run_encode(original, compressed, quiet) != 0:
        return False
    if not quiet:
        print("2. Recovering...")
    if run_decode(compressed, recovered, quiet) != 0:
        return False
    if not quiet:
        print("3. Comparing files...")
    try:
        identical = files_identical(original, recovered)
    except OSError as e:
        print(f"ERROR: unable to open files for comparison: {e}", file=sys.stderr)
        return False
    return identical


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="huffpress", description="Static Huffman file compressor")
    ap.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    ap.add_argument("-q", "--quiet", action="store_true", help="Do not print statistics")
    sub = ap.add_subparsers(dest="command", required=True)

    enc = sub.add_parser("encode", help="Compress a file")
    enc.add_argument("source", type=Path)
    enc.add_argument("compressed", type=Path)

    dec = sub.add_parser("decode", help="Restore a compressed file")
    dec.add_argument("compressed", type=Path)
    dec.add_argument("recovered", type=Path)

    test = sub.add_parser("test", help="Compress, restore and compare a file")
    test.add_argument("source", type=Path)
    test.add_argument("compressed", type=Path)
    test.add_argument("recovered", type=Path)
    return ap


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    if args.command == "encode":
        return run_encode(args.source, args.compressed, args.quiet)
    if args.command == "decode":
        return run_decode(args.compressed, args.recovered, args.quiet)

    if validate_round_trip(args.source, args.compressed, args.recovered, args.quiet):
        print("TEST PASSED: the original and restored files are identical")
        return 0
    print("TEST FAILED: the original and restored files differ")
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
