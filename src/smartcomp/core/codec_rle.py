from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Tuple

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

MAX_RUN = 255

# (count, symbol), 1 <= count <= MAX_RUN
RunList = List[Tuple[int, Any]]


def encode_runs(payload: Symbols) -> RunList:
    """Maximal runs, split every MAX_RUN symbols."""
    runs: RunList = []
    if not payload:
        return runs

    cur = payload[0]
    count = 1
    for sym in payload[1:]:
        if sym == cur and count < MAX_RUN:
            count += 1
        else:
            runs.append((count, cur))
            cur = sym
            count = 1
    runs.append((count, cur))
    return runs


def decode_runs(runs: RunList, binary: bool = False) -> Symbols:
    out: List[Any] = []
    for count, sym in runs:
        if not (1 <= count <= MAX_RUN):
            raise MalformedEncoding(f"rle: run count out of range: {count}")
        out.extend([sym] * count)
    return join_symbols(out, binary)


def _pairs_to_runs(counts: List[int], symbols: List[Any]) -> RunList:
    return list(zip(counts, symbols))


@dataclass(frozen=True)
class RLEResult(CodecResult):
    encoded: Symbols  # str for text, bytes for binary
    runs: Tuple[Tuple[int, Any], ...]


class CodecRLE(Codec):
    """
    Run-length coding as (count, symbol) pairs.
      - text:   chr(count) + character
      - binary: count byte + data byte
    """

    codec_id = "rle"

    def compress(self, payload: str) -> RLEResult:
        t0 = start_timer()
        require_payload(payload, self.codec_id)

        runs = encode_runs(payload)
        encoded = "".join(chr(count) + sym for count, sym in runs)
        compressed_size = len(encoded.encode("utf-8"))

        return RLEResult(
            original_size=len(payload),
            compressed_size=compressed_size,
            ratio=compute_ratio(len(payload), compressed_size),
            processing_time_ms=elapsed_ms(t0),
            encoded=encoded,
            runs=tuple(runs),
        )

    def decompress(self, encoded: str) -> str:
        if len(encoded) % 2 != 0:
            raise MalformedEncoding(f"rle: odd encoded length {len(encoded)} (count without symbol)")
        counts = [ord(c) for c in encoded[0::2]]
        return decode_runs(_pairs_to_runs(counts, list(encoded[1::2])))

    def compress_bytes(self, payload: bytes) -> RLEResult:
        t0 = start_timer()
        require_payload(payload, self.codec_id)

        runs = encode_runs(bytes(payload))
        out = bytearray()
        for count, b in runs:
            out.append(count)
            out.append(b)

        return RLEResult(
            original_size=len(payload),
            compressed_size=len(out),
            ratio=compute_ratio(len(payload), len(out)),
            processing_time_ms=elapsed_ms(t0),
            encoded=bytes(out),
            runs=tuple(runs),
        )

    def decompress_bytes(self, encoded: bytes) -> bytes:
        b = bytes(encoded)
        if len(b) % 2 != 0:
            raise MalformedEncoding(f"rle: odd encoded length {len(b)} (count without byte)")
        runs = _pairs_to_runs(list(b[0::2]), list(b[1::2]))
        return decode_runs(runs, binary=True)  # type: ignore[return-value]

    def analyze(self, payload: Symbols) -> dict[str, Any]:
        """Advisory only: average length of the (uncapped) runs."""
        if not payload:
            return {"effectiveness": 0.0}

        runs = 0
        cur = payload[0]
        for sym in payload[1:]:
            if sym != cur:
                runs += 1
                cur = sym
        runs += 1

        avg = len(payload) / runs
        effectiveness = max(0.0, (avg - 1) / avg)
        return {
            "effectiveness": effectiveness,
            "averageRunLength": avg,
            "totalRuns": runs,
            "recommendation": "Good for RLE" if effectiveness > 0.3 else "Poor for RLE",
        }
