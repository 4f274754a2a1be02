from __future__ import annotations

from dataclasses import dataclass

from smartcomp.errors import MalformedEncoding, UnsupportedCodec

try:
    import zstandard as zstd  # type: ignore
except Exception:  # pragma: no cover
    zstd = None


def have_zstd() -> bool:
    return zstd is not None


@dataclass
class CodecZstd:
    """Fallback engine on zstd frames; only selectable when 'zstandard' is installed."""

    level: int = 19
    codec_id: str = "zstd"

    def _require(self) -> None:
        if zstd is None:
            raise UnsupportedCodec(
                "zstd: module 'zstandard' not available. Install with: python3 -m pip install zstandard"
            )

    def compress(self, data: bytes) -> bytes:
        self._require()
        return zstd.ZstdCompressor(level=int(self.level)).compress(data)

    def decompress(self, data: bytes, out_size: int | None = None) -> bytes:
        self._require()
        d = zstd.ZstdDecompressor()
        try:
            if out_size is None:
                return d.decompress(data)
            return d.decompress(data, max_output_size=int(out_size))
        except zstd.ZstdError as e:
            raise MalformedEncoding(f"zstd: corrupt stream: {e}") from e
