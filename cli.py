"""
Command line front end for the Huffman codec.

How to run:
  python cli.py compress notes.txt notes.huf --text
  python cli.py decompress notes.huf notes.out
  python cli.py codes notes.txt --text
"""

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import List, Optional

import container
from huffman import HuffmanCompressor, HuffmanError

logger = logging.getLogger("huffman.cli")


def setup_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        stream=sys.stderr
    )


def load_input(path: str, text: bool):
    p = Path(path)
    raw = p.read_bytes()
    # decode from bytes so \r\n and lone \r survive unchanged
    return raw.decode("utf-8") if text else raw


def cmd_compress(args: argparse.Namespace) -> int:
    data = load_input(args.input, args.text)
    size = container.write_archive(args.output, data)
    original = len(data.encode("utf-8")) if args.text else len(data)
    ratio = size / max(1, original) * 100
    print(f"{args.input}: {original} -> {size} bytes ({ratio:.1f}%)")
    return 0


def cmd_decompress(args: argparse.Namespace) -> int:
    data = container.read_archive(args.input)
    out = Path(args.output)
    if isinstance(data, str):
        out.write_bytes(data.encode("utf-8"))
    else:
        out.write_bytes(data)
    print(f"{args.input}: restored {len(data)} symbols to {args.output}")
    return 0


def cmd_codes(args: argparse.Namespace) -> int:
    compressor = HuffmanCompressor()
    compressor.compress(load_input(args.input, args.text))

    print("Generated Huffman Codes:")
    print("-" * 30)
    for name, code, frequency in compressor.code_report():
        print(f"{name} -> {code} (freq: {frequency})")

    stats = compressor.stats()
    print(f"Compressed Size: {stats.compressed_bits} bits")
    print(f"Compression Ratio: {stats.ratio:.1f}%")
    print(f"Space Saved: {stats.space_saved:.1f}%")
    return 0


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="huffman-codec", description="Huffman file compression")
    ap.add_argument("--log-level", type=str, default=os.getenv("HUFFMAN_LOG_LEVEL", "INFO"),
                    help="Logging level (default: $HUFFMAN_LOG_LEVEL or INFO)")
    sub = ap.add_subparsers(dest="command", required=True)

    p = sub.add_parser("compress", help="Compress a file into a .huf container")
    p.add_argument("input")
    p.add_argument("output")
    p.add_argument("--text", action="store_true", help="Treat input as UTF-8 text (symbols are characters)")
    p.set_defaults(func=cmd_compress)

    p = sub.add_parser("decompress", help="Restore a file from a .huf container")
    p.add_argument("input")
    p.add_argument("output")
    p.set_defaults(func=cmd_decompress)

    p = sub.add_parser("codes", help="Print the code table for a file")
    p.add_argument("input")
    p.add_argument("--text", action="store_true", help="Treat input as UTF-8 text (symbols are characters)")
    p.set_defaults(func=cmd_codes)
    return ap


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level)
    try:
        return args.func(args)
    except (HuffmanError, OSError, UnicodeDecodeError) as e:
        logger.error("%s failed: %s", args.command, e)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
