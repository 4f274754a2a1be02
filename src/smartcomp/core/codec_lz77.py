from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Union

from smartcomp.core.codec_base import (
    Codec,
    CodecResult,
    compute_ratio,
    elapsed_ms,
    require_payload,
    start_timer,
)
from smartcomp.errors import MalformedEncoding

DEFAULT_WINDOW_SIZE = 4096
DEFAULT_LOOKAHEAD_SIZE = 18
# shorter matches cost more than the literals they replace
MIN_MATCH = 3

DELIM = "|"


@dataclass(frozen=True)
class Literal:
    symbol: str


@dataclass(frozen=True)
class Match:
    offset: int
    length: int
    next_symbol: str | None = None


Token = Union[Literal, Match]


def token_to_json(tok: Token) -> dict[str, Any]:
    if isinstance(tok, Literal):
        return {"type": "literal", "char": tok.symbol}
    return {
        "type": "match",
        "offset": tok.offset,
        "length": tok.length,
        "nextChar": tok.next_symbol or "",
    }


def token_from_json(obj: dict[str, Any]) -> Token:
    t = obj.get("type")
    if t == "literal":
        return Literal(str(obj["char"]))
    if t == "match":
        nxt = obj.get("nextChar") or None
        return Match(int(obj["offset"]), int(obj["length"]), nxt)
    raise ValueError(f"lz77: unknown token type {t!r}")


# -------------------
# Text form
# L<sym>|  or  M<offset>,<length>,<next>|   (<next> empty only on the last token)
# -------------------
def serialize_tokens(tokens: list[Token]) -> str:
    parts: list[str] = []
    for tok in tokens:
        if isinstance(tok, Literal):
            parts.append(f"L{tok.symbol}{DELIM}")
        else:
            parts.append(f"M{tok.offset},{tok.length},{tok.next_symbol or ''}{DELIM}")
    return "".join(parts)


def _read_int(s: str, idx: int, stop: str) -> tuple[int, int]:
    end = s.find(stop, idx)
    if end < 0:
        raise MalformedEncoding(f"lz77: unterminated number at {idx}")
    digits = s[idx:end]
    if not (digits.isascii() and digits.isdigit()):
        raise MalformedEncoding(f"lz77: bad number {digits!r} at {idx}")
    return int(digits), end + 1


def parse_tokens(serialized: str) -> list[Token]:
    """
    Sequential scan rather than split(DELIM): a literal or next symbol may
    itself be the delimiter.
    """
    tokens: list[Token] = []
    idx = 0
    n = len(serialized)

    while idx < n:
        marker = serialized[idx]
        idx += 1

        if marker == "L":
            if idx + 2 > n or serialized[idx + 1] != DELIM:
                raise MalformedEncoding(f"lz77: truncated literal at {idx - 1}")
            tokens.append(Literal(serialized[idx]))
            idx += 2
            continue

        if marker == "M":
            offset, idx = _read_int(serialized, idx, ",")
            length, idx = _read_int(serialized, idx, ",")
            if offset < 1 or length < 1:
                raise MalformedEncoding(f"lz77: invalid match ({offset},{length})")
            if serialized[idx:] == DELIM:
                # match running to the end of input
                tokens.append(Match(offset, length, None))
                idx += 1
                continue
            if idx + 2 > n or serialized[idx + 1] != DELIM:
                raise MalformedEncoding(f"lz77: truncated match at {idx}")
            tokens.append(Match(offset, length, serialized[idx]))
            idx += 2
            continue

        raise MalformedEncoding(f"lz77: unknown token marker {marker!r} at {idx - 1}")

    return tokens


def replay_tokens(tokens: list[Token]) -> str:
    out: list[str] = []
    for tok in tokens:
        if isinstance(tok, Literal):
            out.append(tok.symbol)
            continue

        start = len(out) - tok.offset
        if start < 0:
            raise MalformedEncoding(
                f"lz77: offset {tok.offset} reaches before start of output ({len(out)})"
            )
        # one symbol at a time: offset < length replicates the pattern
        for i in range(tok.length):
            out.append(out[start + i])

        if tok.next_symbol:
            out.append(tok.next_symbol)
    return "".join(out)


@dataclass(frozen=True)
class LZ77Result(CodecResult):
    serialized: str
    tokens: tuple[Token, ...]

    def tokens_json(self) -> list[dict[str, Any]]:
        return [token_to_json(t) for t in self.tokens]


class CodecLZ77(Codec):
    """Sliding-window LZ77 with exhaustive longest-match search."""

    codec_id = "lz77"

    def __init__(
        self,
        window_size: int = DEFAULT_WINDOW_SIZE,
        lookahead_size: int = DEFAULT_LOOKAHEAD_SIZE,
    ):
        if window_size < 1:
            raise ValueError(f"window_size must be >= 1, got {window_size}")
        if lookahead_size < MIN_MATCH:
            raise ValueError(f"lookahead_size must be >= {MIN_MATCH}, got {lookahead_size}")
        self.window_size = window_size
        self.lookahead_size = lookahead_size

    def find_longest_match(self, payload: str, position: int) -> tuple[int, int]:
        """Return (offset, length); (0, 0) when nothing matches."""
        window_start = max(0, position - self.window_size)
        lookahead_end = min(len(payload), position + self.lookahead_size)

        best_offset, best_length = 0, 0
        for i in range(window_start, position):
            length = 0
            while (
                position + length < lookahead_end
                and payload[i + length] == payload[position + length]
            ):
                length += 1
            # strictly longer only: ties keep the first i found
            if length > best_length:
                best_offset, best_length = position - i, length

        return best_offset, best_length

    def tokenize(self, payload: str) -> list[Token]:
        tokens: list[Token] = []
        position = 0
        n = len(payload)

        while position < n:
            offset, length = self.find_longest_match(payload, position)
            if length >= MIN_MATCH:
                end = position + length
                nxt = payload[end] if end < n else None
                tokens.append(Match(offset, length, nxt))
                position = end + (1 if nxt is not None else 0)
            else:
                tokens.append(Literal(payload[position]))
                position += 1

        return tokens

    def compress(self, payload: str) -> LZ77Result:
        t0 = start_timer()
        require_payload(payload, self.codec_id)

        tokens = self.tokenize(payload)
        serialized = serialize_tokens(tokens)
        compressed_size = len(serialized.encode("utf-8"))

        return LZ77Result(
            original_size=len(payload),
            compressed_size=compressed_size,
            ratio=compute_ratio(len(payload), compressed_size),
            processing_time_ms=elapsed_ms(t0),
            serialized=serialized,
            tokens=tuple(tokens),
        )

    def decompress(self, serialized: str) -> str:
        return replay_tokens(parse_tokens(serialized))

    def analyze(self, payload: str) -> dict[str, Any]:
        """Advisory only: share of the input a match would cover."""
        if not payload:
            return {"effectiveness": 0.0}

        total_matches = 0
        total_match_length = 0
        position = 0
        while position < len(payload):
            _, length = self.find_longest_match(payload, position)
            if length >= MIN_MATCH:
                total_matches += 1
                total_match_length += length
                position += length
            else:
                position += 1

        effectiveness = total_match_length / len(payload)
        avg = total_match_length / total_matches if total_matches else 0.0
        return {
            "effectiveness": effectiveness,
            "averageMatchLength": avg,
            "totalMatches": total_matches,
            "recommendation": "Good for LZ77" if effectiveness > 0.2 else "Poor for LZ77",
        }
