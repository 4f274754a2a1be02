"""Side-channel metadata for a compressed artifact.

A ``CompressionRecord`` plus its artifact is everything needed to decode.
Decoder selection goes through ``CodecIdentity`` (a small tagged value),
never through the human readable ``algorithm`` string, which is display only.
Records written by older tooling carry only that string: ``from_display``
parses it so they stay decodable.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal

from smartcomp.errors import MalformedEncoding, UnsupportedCodec

CODEC_IDS: tuple[str, ...] = ("huffman", "rle", "lz77", "gzip")
FALLBACK_IDS: tuple[str, ...] = ("gzip", "zlib", "zstd")

ContentClass = Literal["text", "binary"]
SubstitutionReason = Literal["binary", "error", "ratio"]

_REASONS = ("binary", "error", "ratio")

_BASE_ALIASES: dict[str, str] = {
    "huffman": "huffman",
    "huffman coding": "huffman",
    "rle": "rle",
    "run-length encoding": "rle",
    "lz77": "lz77",
    "gzip": "gzip",
}


@dataclass(frozen=True)
class CodecIdentity:
    """
    Primary(codec)                     -> fallback is None
    FallbackSubstituted(codec, reason) -> artifact was produced by ``fallback``
    """

    codec: str
    fallback: str | None = None
    reason: SubstitutionReason | None = None

    def __post_init__(self) -> None:
        if self.codec not in CODEC_IDS:
            raise UnsupportedCodec(f"unknown codec id: {self.codec!r}")
        if self.fallback is None:
            if self.reason is not None:
                raise ValueError("identity: reason without fallback")
            return
        if self.fallback not in FALLBACK_IDS:
            raise UnsupportedCodec(f"unknown fallback codec id: {self.fallback!r}")
        if self.reason not in _REASONS:
            raise ValueError(f"identity: invalid substitution reason {self.reason!r}")

    @classmethod
    def primary(cls, codec: str) -> "CodecIdentity":
        return cls(codec=codec)

    @classmethod
    def substituted(cls, codec: str, fallback: str, reason: SubstitutionReason) -> "CodecIdentity":
        return cls(codec=codec, fallback=fallback, reason=reason)

    @property
    def kind(self) -> str:
        return "primary" if self.fallback is None else "fallback"

    @property
    def decoder_id(self) -> str:
        """Codec that actually produced the artifact."""
        return self.fallback or self.codec

    def display(self, content_class: ContentClass = "text") -> str:
        if self.fallback is None:
            if self.codec == "rle" and content_class == "binary":
                return "rle (binary)"
            return self.codec
        if self.reason == "binary":
            return f"{self.codec} ({self.fallback} for binary)"
        if self.reason == "error":
            return f"{self.codec} (fallback {self.fallback})"
        return f"{self.codec} (optimized with {self.fallback})"

    def to_json(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "codec": self.codec,
            "fallback": self.fallback,
            "reason": self.reason,
        }

    @classmethod
    def from_json(cls, obj: Any) -> "CodecIdentity":
        if not isinstance(obj, dict):
            raise MalformedEncoding("identity: expected an object")
        kind = obj.get("kind")
        codec = obj.get("codec")
        if kind == "primary":
            return cls.primary(str(codec))
        if kind == "fallback":
            return cls.substituted(str(codec), str(obj.get("fallback")), obj.get("reason"))
        raise MalformedEncoding(f"identity: unknown kind {kind!r}")

    @classmethod
    def from_display(cls, algorithm: str) -> "CodecIdentity":
        """Parse a display string, including the legacy ones ("Huffman Coding", "RLE (Binary)", ...)."""
        s = str(algorithm).strip().lower()
        base, _, note = s.partition(" (")
        note = note.rstrip(")").strip()

        codec = _BASE_ALIASES.get(base.strip())
        if codec is None:
            raise UnsupportedCodec(f"cannot infer codec from algorithm {algorithm!r}")

        if not note or note == "binary":
            return cls.primary(codec)
        if note.endswith(" for binary"):
            return cls.substituted(codec, note[: -len(" for binary")].strip(), "binary")
        if note.startswith("optimized with "):
            return cls.substituted(codec, note[len("optimized with "):].strip(), "ratio")
        if note.startswith("fallback "):
            return cls.substituted(codec, note[len("fallback "):].strip(), "error")
        raise UnsupportedCodec(f"cannot infer codec from algorithm {algorithm!r}")


def _require_int(obj: dict[str, Any], key: str, *, minimum: int = 0) -> int:
    v = obj.get(key)
    if isinstance(v, bool) or not isinstance(v, int) or v < minimum:
        raise MalformedEncoding(f"metadata: field '{key}' must be an int >= {minimum}")
    return v


@dataclass(frozen=True)
class CompressionRecord:
    identity: CodecIdentity
    original_size: int
    compressed_size: int
    ratio: float
    processing_time_ms: float
    content_class: ContentClass = "text"
    tree: dict[str, str] | None = None
    tokens: list[dict[str, Any]] | None = None
    bit_length: int | None = None

    @property
    def algorithm(self) -> str:
        return self.identity.display(self.content_class)

    @property
    def compression_percentage(self) -> float:
        return (self.original_size - self.compressed_size) / self.original_size * 100.0

    def to_json(self) -> dict[str, Any]:
        return {
            "algorithm": self.algorithm,
            "identity": self.identity.to_json(),
            "fileType": self.content_class,
            "originalSize": self.original_size,
            "compressedSize": self.compressed_size,
            "compressionRatio": self.ratio,
            "compressionPercentage": round(self.compression_percentage, 2),
            "processingTime": self.processing_time_ms,
            "tree": dict(self.tree) if self.tree is not None else None,
            "tokens": list(self.tokens) if self.tokens is not None else None,
            "bitLength": self.bit_length,
        }

    @classmethod
    def from_json(cls, obj: Any) -> "CompressionRecord":
        if not isinstance(obj, dict):
            raise MalformedEncoding("metadata: expected an object")

        if obj.get("identity") is not None:
            identity = CodecIdentity.from_json(obj["identity"])
        elif isinstance(obj.get("algorithm"), str):
            identity = CodecIdentity.from_display(obj["algorithm"])
        else:
            raise MalformedEncoding("metadata: missing 'identity' and 'algorithm'")

        content_class = obj.get("fileType", "text")
        if content_class not in ("text", "binary"):
            raise MalformedEncoding(f"metadata: invalid fileType {content_class!r}")

        tree = obj.get("tree")
        if tree is not None and not isinstance(tree, dict):
            raise MalformedEncoding("metadata: 'tree' must be an object")
        tokens = obj.get("tokens")
        if tokens is not None and not isinstance(tokens, list):
            raise MalformedEncoding("metadata: 'tokens' must be a list")
        bit_length = obj.get("bitLength")
        if bit_length is not None:
            bit_length = _require_int(obj, "bitLength")

        original_size = _require_int(obj, "originalSize", minimum=1)
        compressed_size = _require_int(obj, "compressedSize", minimum=1)
        ratio = obj.get("compressionRatio")
        if not isinstance(ratio, (int, float)) or isinstance(ratio, bool):
            ratio = original_size / compressed_size

        return cls(
            identity=identity,
            original_size=original_size,
            compressed_size=compressed_size,
            ratio=float(ratio),
            processing_time_ms=float(obj.get("processingTime") or 0.0),
            content_class=content_class,
            tree=tree,
            tokens=tokens,
            bit_length=bit_length,
        )
