from __future__ import annotations

import time
from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, Union

from smartcomp.errors import EmptyInput

# text payloads are str (one symbol per character), binary payloads are bytes
Symbols = Union[str, bytes]


@dataclass(frozen=True)
class CodecResult:
    """Sizing common to every codec result."""

    original_size: int
    compressed_size: int
    ratio: float
    processing_time_ms: float


def require_payload(payload: Sequence[Any] | None, codec_id: str) -> None:
    if payload is None or len(payload) == 0:
        raise EmptyInput(f"{codec_id}: no data to compress")


def compute_ratio(original_size: int, compressed_size: int) -> float:
    if compressed_size <= 0:
        raise ValueError(f"compressed_size must be >= 1, got {compressed_size}")
    return original_size / compressed_size


def start_timer() -> float:
    return time.perf_counter()


def elapsed_ms(t0: float) -> float:
    return (time.perf_counter() - t0) * 1000.0


def join_symbols(symbols: Sequence[Any], binary: bool) -> Symbols:
    if binary:
        return bytes(symbols)
    return "".join(symbols)


class Codec(ABC):
    """
    Minimal interface for the symbol codecs.

    Instances only hold configuration: every call builds its working state
    from scratch and returns it by value, so one instance can be shared
    between threads.
    """

    codec_id: str

    @abstractmethod
    def compress(self, payload: Symbols) -> CodecResult:
        raise NotImplementedError

    @abstractmethod
    def decompress(self, encoded: Any, *args: Any, **kwargs: Any) -> Symbols:
        raise NotImplementedError
