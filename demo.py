"""
Print the Huffman tree, code table and encoding for a piece of text.

  python demo.py
  python demo.py "abracadabra"
  python demo.py "aaabbc" --bits 00010101     # decode foreign bits against the tree of "aaabbc"
"""

import argparse
import sys
from typing import List, Optional

from loguru import logger

import huffman as huff


def main(argv: Optional[List[str]] = None) -> int:
    ap = argparse.ArgumentParser(description="Huffman coding demo")
    ap.add_argument("text", nargs="?", default="hello, wired world", help="Text whose characters are the alphabet")
    ap.add_argument("--bits", type=str, default=None, help="Decode these bits against the tree instead of encoding the text")
    ap.add_argument("--log-level", type=str, default="WARNING", help="loguru level (DEBUG shows tree construction)")
    args = ap.parse_args(argv)
    huff.configure_logging(args.log_level)

    try:
        root = huff.build_huffman_tree(huff.frequency_table(args.text))
        code_map = huff.generate_huffman_codes(root)

        print("tree:", huff.format_tree(root))
        for symbol, code in sorted(code_map.items(), key=lambda item: (len(item[1]), item[1])):
            print(f"  {symbol!r}: {code}")

        if args.bits is not None:
            print("text:", ''.join(huff.huffman_decode(args.bits, root)))
            return 0

        bits = huff.huffman_encode(args.text, code_map)
        print(f"code: {bits} ({len(bits)} bits, {len(args.text) * 8} as 8-bit characters)")
        print("text:", ''.join(huff.huffman_decode(bits, root)))
    except huff.HuffmanError as e:
        logger.error(str(e))
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
