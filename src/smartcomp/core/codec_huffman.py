from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

import heapq
import itertools

from smartcomp.core.codec_base import (
    Codec,
    CodecResult,
    Symbols,
    compute_ratio,
    elapsed_ms,
    join_symbols,
    require_payload,
    start_timer,
)
from smartcomp.errors import MalformedEncoding

# symbol -> prefix code ("0"/"1" string)
CodeTable = Dict[Any, str]


# -------------------
# Huffman building blocks
# -------------------
@dataclass
class HuffmanNode:
    freq: int
    symbol: Optional[Any] = None  # char/byte for leaves, None for internal nodes
    left: Optional["HuffmanNode"] = None
    right: Optional["HuffmanNode"] = None

    def is_leaf(self) -> bool:
        return self.left is None and self.right is None


def build_freq_table(payload: Symbols) -> Dict[Any, int]:
    """Symbol counts, in order of first appearance."""
    freq: Dict[Any, int] = {}
    for sym in payload:
        freq[sym] = freq.get(sym, 0) + 1
    return freq


def build_huffman_tree(freq: Dict[Any, int]) -> Optional[HuffmanNode]:
    """
    Min-heap; equal frequencies resolve as a sorted list with splice-in:
      - leaves keep first-appearance order: key (freq, 1, leaf_no)
      - a merged node lands before every queued node of the same frequency,
        newest merge first: key (freq, 0, -merge_no)
    Same input, same tree, same code table.
    """
    heap: List[tuple[int, int, int, HuffmanNode]] = []

    for leaf_no, (sym, f) in enumerate(freq.items()):
        if f > 0:
            heapq.heappush(heap, (f, 1, leaf_no, HuffmanNode(freq=f, symbol=sym)))

    if not heap:
        return None

    merges = itertools.count()
    while len(heap) > 1:
        n1 = heapq.heappop(heap)[3]
        n2 = heapq.heappop(heap)[3]
        parent = HuffmanNode(freq=n1.freq + n2.freq, symbol=None, left=n1, right=n2)
        heapq.heappush(heap, (parent.freq, 0, -next(merges), parent))

    return heap[0][3]


def build_code_table(root: HuffmanNode) -> CodeTable:
    codes: CodeTable = {}

    def dfs(node: HuffmanNode, path: str) -> None:
        if node.is_leaf():
            # a lone root leaf still needs one bit
            codes[node.symbol] = path or "0"
            return
        if node.left is not None:
            dfs(node.left, path + "0")
        if node.right is not None:
            dfs(node.right, path + "1")

    dfs(root, "")
    return codes


def encode_symbols(payload: Symbols, codes: CodeTable) -> str:
    return "".join(codes[sym] for sym in payload)


def pack_bits(bits: str) -> Tuple[bytes, int]:
    """
    bitstring -> (bytes MSB-first, lastbits)
    lastbits = number of valid bits in the last byte (1..8), 0 for an empty bitstring.
    """
    if not bits:
        return b"", 0

    out = bytearray()
    for i in range(0, len(bits), 8):
        chunk = bits[i:i + 8]
        out.append(int(chunk.ljust(8, "0"), 2))

    lastbits = len(bits) % 8 or 8
    return bytes(out), lastbits


def unpack_bits(blob: bytes, bit_length: int) -> str:
    if bit_length < 0 or bit_length > len(blob) * 8:
        raise MalformedEncoding(
            f"huffman: bit_length {bit_length} out of range for {len(blob)} bytes"
        )
    bits = "".join(format(b, "08b") for b in blob)
    return bits[:bit_length]


def _check_code_table(code_table: CodeTable) -> Dict[str, Any]:
    """Inverse mapping code -> symbol; rejects tables that are not prefix codes."""
    if not code_table:
        raise MalformedEncoding("huffman: empty code table")

    inverse: Dict[str, Any] = {}
    for sym, code in code_table.items():
        if not isinstance(code, str) or not code or set(code) - {"0", "1"}:
            raise MalformedEncoding(f"huffman: invalid code for symbol {sym!r}: {code!r}")
        if code in inverse:
            raise MalformedEncoding(f"huffman: duplicate code {code!r}")
        inverse[code] = sym

    codes = sorted(inverse)
    for a, b in zip(codes, codes[1:]):
        if b.startswith(a):
            raise MalformedEncoding(f"huffman: {a!r} is a prefix of {b!r}")
    return inverse


@dataclass(frozen=True)
class HuffmanResult(CodecResult):
    code_table: CodeTable
    bitstring: str

    @property
    def bit_length(self) -> int:
        return len(self.bitstring)

    def packed(self) -> bytes:
        return pack_bits(self.bitstring)[0]


class CodecHuffman(Codec):
    """Static Huffman coding, one frequency table per payload."""

    codec_id = "huffman"

    def compress(self, payload: Symbols) -> HuffmanResult:
        t0 = start_timer()
        require_payload(payload, self.codec_id)

        freq = build_freq_table(payload)
        if len(freq) == 1:
            # single symbol: "0" per occurrence, no tree
            (sym,) = freq
            code_table: CodeTable = {sym: "0"}
            bits = "0" * len(payload)
        else:
            root = build_huffman_tree(freq)
            assert root is not None
            code_table = build_code_table(root)
            bits = encode_symbols(payload, code_table)

        compressed_size = (len(bits) + 7) // 8
        return HuffmanResult(
            original_size=len(payload),
            compressed_size=compressed_size,
            ratio=compute_ratio(len(payload), compressed_size),
            processing_time_ms=elapsed_ms(t0),
            code_table=code_table,
            bitstring=bits,
        )

    def decompress(self, bitstring: str, code_table: CodeTable, binary: bool = False) -> Symbols:
        """
        Greedy prefix scan. The candidate never grows past the longest code:
        if it does, or bits are left over at the end, the stream is malformed.
        """
        inverse = _check_code_table(code_table)
        max_len = max(len(c) for c in inverse)

        out: List[Any] = []
        cur = ""
        for bit in bitstring:
            if bit not in "01":
                raise MalformedEncoding(f"huffman: non-binary digit {bit!r} in bitstring")
            cur += bit
            sym = inverse.get(cur)
            if sym is not None:
                out.append(sym)
                cur = ""
            elif len(cur) >= max_len:
                raise MalformedEncoding(f"huffman: no code matches prefix {cur!r}")

        if cur:
            raise MalformedEncoding(f"huffman: dangling prefix {cur!r} at end of bitstring")

        return join_symbols(out, binary)

    def decompress_packed(
        self, blob: bytes, bit_length: int, code_table: CodeTable, binary: bool = False
    ) -> Symbols:
        return self.decompress(unpack_bits(blob, bit_length), code_table, binary=binary)
