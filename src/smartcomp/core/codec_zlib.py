from __future__ import annotations

import zlib

from smartcomp.errors import MalformedEncoding

# wbits for zlib.compressobj / zlib.decompress
_WBITS = {
    "zlib": zlib.MAX_WBITS,
    "gzip": zlib.MAX_WBITS | 16,  # gzip header/trailer, mtime=0
}


class CodecZlib:
    """DEFLATE byte codec (no external deps), gzip or zlib framing."""

    def __init__(self, level: int = 9, container: str = "gzip"):
        if not (0 <= level <= 9):
            raise ValueError(f"zlib level must be 0..9, got {level}")
        if container not in _WBITS:
            raise ValueError(f"zlib container must be one of {sorted(_WBITS)}, got {container!r}")
        self.level = level
        self.container = container
        self.codec_id = container

    def compress(self, data: bytes) -> bytes:
        if not isinstance(data, (bytes, bytearray)):
            raise TypeError("data must be bytes")
        c = zlib.compressobj(self.level, zlib.DEFLATED, _WBITS[self.container])
        return c.compress(bytes(data)) + c.flush()

    def decompress(self, comp: bytes, out_size: int | None = None) -> bytes:
        # out_size is ignored for deflate
        if not isinstance(comp, (bytes, bytearray)):
            raise TypeError("comp must be bytes")
        try:
            return zlib.decompress(bytes(comp), _WBITS[self.container])
        except zlib.error as e:
            raise MalformedEncoding(f"{self.codec_id}: corrupt stream: {e}") from e
