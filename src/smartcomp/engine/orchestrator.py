from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from smartcomp.config import OrchestratorConfig
from smartcomp.core.codec_base import elapsed_ms, start_timer
from smartcomp.core.codec_huffman import CodecHuffman, pack_bits
from smartcomp.core.codec_lz77 import CodecLZ77
from smartcomp.core.codec_rle import CodecRLE
from smartcomp.core.codec_zlib import CodecZlib
from smartcomp.core.codec_zstd import CodecZstd, have_zstd
from smartcomp.errors import (
    CodecExecutionFailure,
    CompressionFailed,
    EmptyInput,
    MalformedEncoding,
    SizeMismatch,
    SmartCompError,
    UnsupportedCodec,
)
from smartcomp.record import (
    CODEC_IDS,
    CodecIdentity,
    CompressionRecord,
    ContentClass,
    SubstitutionReason,
)

log = logging.getLogger(__name__)

# symbol-oriented codecs: binary payloads go straight to the fallback
_TEXT_ONLY = frozenset({"huffman", "lz77"})

ALGORITHMS: tuple[dict[str, str], ...] = (
    {
        "id": "huffman",
        "name": "Huffman Coding",
        "description": "Frequency-based compression using variable-length codes",
        "bestFor": "Text files with varied character frequencies",
    },
    {
        "id": "rle",
        "name": "Run-Length Encoding",
        "description": "Compresses consecutive identical characters",
        "bestFor": "Images and data with repeated patterns",
    },
    {
        "id": "lz77",
        "name": "LZ77",
        "description": "Dictionary-based compression using sliding window",
        "bestFor": "General text files",
    },
    {
        "id": "gzip",
        "name": "GZIP",
        "description": "Industry-standard DEFLATE compression",
        "bestFor": "All file types - fallback for the other codecs",
    },
)


def resolve_fallback_id(fallback_id: str, *, have_zstd: bool) -> str:
    fid = str(fallback_id)
    if fid == "zstd" and not have_zstd:
        return "gzip"
    return fid


@dataclass(frozen=True)
class CompressionResult:
    artifact: bytes
    record: CompressionRecord

    @property
    def compression_percentage(self) -> float:
        return self.record.compression_percentage


@dataclass(frozen=True)
class DecompressionResult:
    payload: bytes
    algorithm: str
    original_size: int
    decompressed_size: int
    processing_time_ms: float


@dataclass(frozen=True)
class _Encoded:
    artifact: bytes
    identity: CodecIdentity
    tree: Optional[Dict[str, str]] = None
    tokens: Optional[List[Dict[str, Any]]] = None
    bit_length: Optional[int] = None


class Orchestrator:
    """
    Adaptive front door over the codecs.

    compress:   dispatch -> primary codec -> (fallback on error) -> ratio check
                -> (fallback if smaller) -> CompressionRecord
    decompress: CodecIdentity -> decoder -> size check against the record

    Holds configuration and codec instances only; calls share no mutable state.
    """

    def __init__(self, config: OrchestratorConfig | None = None):
        self.config = config or OrchestratorConfig()
        self.huffman = CodecHuffman()
        self.lz77 = CodecLZ77(self.config.window_size, self.config.lookahead_size)
        self.rle = CodecRLE()
        self.fallback_id = resolve_fallback_id(self.config.fallback_codec, have_zstd=have_zstd())
        if self.fallback_id != self.config.fallback_codec:
            log.warning(
                "fallback %s not available, using %s", self.config.fallback_codec, self.fallback_id
            )

    @staticmethod
    def algorithms() -> list[dict[str, str]]:
        return [dict(a) for a in ALGORITHMS]

    # -------------------
    # fallback engines
    # -------------------
    def _fallback_engine(self, fallback_id: str) -> Any:
        level = (
            self.config.fallback_level
            if fallback_id == self.config.fallback_codec
            else None
        )
        if fallback_id in ("gzip", "zlib"):
            return CodecZlib(level=9 if level is None else level, container=fallback_id)
        if fallback_id == "zstd":
            if not have_zstd():
                raise UnsupportedCodec("zstd: module 'zstandard' not available")
            return CodecZstd(level=19 if level is None else level)
        raise UnsupportedCodec(f"unknown fallback codec id: {fallback_id!r}")

    def _run_fallback(self, data: bytes, codec_id: str, reason: SubstitutionReason) -> _Encoded:
        fid = self.fallback_id
        try:
            artifact = self._fallback_engine(fid).compress(data)
        except Exception as e:
            raise CompressionFailed(f"{codec_id}: fallback {fid} failed: {e}") from e
        return _Encoded(artifact=artifact, identity=CodecIdentity.substituted(codec_id, fid, reason))

    # -------------------
    # compress
    # -------------------
    def _run_primary(self, data: bytes, codec_id: str, is_text: bool) -> _Encoded:
        ident = CodecIdentity.primary(codec_id)
        try:
            if codec_id == "gzip":
                return _Encoded(artifact=self._fallback_engine("gzip").compress(data), identity=ident)

            if codec_id == "rle" and not is_text:
                res = self.rle.compress_bytes(data)
                return _Encoded(artifact=bytes(res.encoded), identity=ident)

            text = data.decode("utf-8")

            if codec_id == "huffman":
                hres = self.huffman.compress(text)
                artifact, _ = pack_bits(hres.bitstring)
                return _Encoded(
                    artifact=artifact,
                    identity=ident,
                    tree=dict(hres.code_table),
                    bit_length=hres.bit_length,
                )

            if codec_id == "lz77":
                lres = self.lz77.compress(text)
                return _Encoded(
                    artifact=lres.serialized.encode("utf-8"),
                    identity=ident,
                    tokens=lres.tokens_json(),
                )

            rres = self.rle.compress(text)
            return _Encoded(artifact=str(rres.encoded).encode("utf-8"), identity=ident)

        except Exception as e:
            raise CodecExecutionFailure(f"{codec_id}: {e}") from e

    def compress(self, payload: bytes, codec_id: str, is_text: bool = True) -> CompressionResult:
        if codec_id not in CODEC_IDS:
            raise UnsupportedCodec(f"unknown codec id: {codec_id!r}")
        data = bytes(payload)
        if not data:
            raise EmptyInput(f"{codec_id}: no data to compress")

        content_class: ContentClass = "text" if is_text else "binary"
        t0 = start_timer()

        if not is_text and codec_id in _TEXT_ONLY:
            log.debug("%s: binary payload, delegating to %s", codec_id, self.fallback_id)
            enc = self._run_fallback(data, codec_id, "binary")
        else:
            try:
                enc = self._run_primary(data, codec_id, is_text)
            except CodecExecutionFailure as e:
                log.warning("%s failed, substituting %s: %s", codec_id, self.fallback_id, e)
                enc = self._run_fallback(data, codec_id, "error")

        ratio = len(data) / len(enc.artifact)
        if ratio < self.config.ratio_threshold and enc.identity.decoder_id != self.fallback_id:
            try:
                alt = self._run_fallback(data, codec_id, "ratio")
            except CompressionFailed as e:
                log.warning("%s: ratio check skipped: %s", codec_id, e)
            else:
                if len(alt.artifact) < len(enc.artifact):
                    log.info(
                        "%s: ratio %.3f below %.3f, replaced by %s (%d -> %d bytes)",
                        codec_id,
                        ratio,
                        self.config.ratio_threshold,
                        self.fallback_id,
                        len(enc.artifact),
                        len(alt.artifact),
                    )
                    enc = alt
                    ratio = len(data) / len(enc.artifact)

        record = CompressionRecord(
            identity=enc.identity,
            original_size=len(data),
            compressed_size=len(enc.artifact),
            ratio=ratio,
            processing_time_ms=elapsed_ms(t0),
            content_class=content_class,
            tree=enc.tree,
            tokens=enc.tokens,
            bit_length=enc.bit_length,
        )
        log.debug(
            "compressed %d -> %d bytes with %s", record.original_size, record.compressed_size, record.algorithm
        )
        return CompressionResult(artifact=enc.artifact, record=record)

    # -------------------
    # decompress
    # -------------------
    def _decode(self, artifact: bytes, record: CompressionRecord) -> bytes:
        ident = record.identity

        if ident.fallback is not None or ident.codec == "gzip":
            return self._fallback_engine(ident.decoder_id).decompress(
                artifact, out_size=record.original_size
            )

        if ident.codec == "rle" and record.content_class == "binary":
            return self.rle.decompress_bytes(artifact)

        # packed bits, not text
        if ident.codec == "huffman":
            if record.tree is None or record.bit_length is None:
                raise MalformedEncoding("huffman: metadata lacks code table or bit length")
            return self.huffman.decompress_packed(artifact, record.bit_length, record.tree).encode("utf-8")

        text = artifact.decode("utf-8")

        if ident.codec == "lz77":
            return self.lz77.decompress(text).encode("utf-8")

        return self.rle.decompress(text).encode("utf-8")

    def decompress(self, artifact: bytes, record: CompressionRecord) -> DecompressionResult:
        t0 = start_timer()
        data = bytes(artifact)
        if not data:
            raise MalformedEncoding(f"{record.algorithm}: no data to decompress")

        try:
            payload = self._decode(data, record)
        except SmartCompError:
            raise
        except Exception as e:
            raise MalformedEncoding(f"{record.algorithm}: {e}") from e

        if len(payload) != record.original_size:
            raise SizeMismatch(
                f"{record.algorithm}: decoded {len(payload)} bytes, metadata declares {record.original_size}"
            )

        return DecompressionResult(
            payload=payload,
            algorithm=record.algorithm,
            original_size=record.original_size,
            decompressed_size=len(payload),
            processing_time_ms=elapsed_ms(t0),
        )

    def decompress_json(self, artifact: bytes, metadata: dict[str, Any]) -> DecompressionResult:
        return self.decompress(artifact, CompressionRecord.from_json(metadata))

    # -------------------
    # advisory
    # -------------------
    def analyze(self, payload: bytes, is_text: bool = True) -> dict[str, Any]:
        """Per-codec advisory report plus a recommended codec id."""
        data = bytes(payload)
        if not data:
            raise EmptyInput("analyze: no data")

        report: dict[str, Any] = {}
        if is_text:
            text = data.decode("utf-8", errors="replace")
            hres = self.huffman.compress(text)
            effectiveness = max(0.0, 1.0 - hres.compressed_size / len(data))
            report["huffman"] = {
                "effectiveness": effectiveness,
                "bitsPerSymbol": hres.bit_length / len(text),
                "alphabetSize": len(hres.code_table),
                "recommendation": "Good for Huffman" if effectiveness > 0.2 else "Poor for Huffman",
            }
            report["lz77"] = self.lz77.analyze(text)
            report["rle"] = self.rle.analyze(text)
        else:
            report["rle"] = self.rle.analyze(data)

        good = [
            (r["effectiveness"], cid)
            for cid, r in report.items()
            if str(r.get("recommendation", "")).startswith("Good")
        ]
        # max by effectiveness, ties keep the catalog order
        best = "gzip"
        best_eff = -1.0
        for eff, cid in good:
            if eff > best_eff:
                best, best_eff = cid, eff
        return {"codecs": report, "recommended": best}
