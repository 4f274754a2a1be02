from __future__ import annotations

import os

import pytest

from smartcomp.core.codec_zlib import CodecZlib
from smartcomp.engine.orchestrator import resolve_fallback_id
from smartcomp.errors import MalformedEncoding, UnsupportedCodec


def test_gzip_roundtrip_and_header() -> None:
    c = CodecZlib()
    data = b"hello hello hello hello\n" * 10
    comp = c.compress(data)
    assert comp[:2] == b"\x1f\x8b"
    assert c.decompress(comp) == data


def test_gzip_is_deterministic() -> None:
    data = os.urandom(2048)
    assert CodecZlib().compress(data) == CodecZlib().compress(data)


def test_zlib_container() -> None:
    c = CodecZlib(level=6, container="zlib")
    assert c.codec_id == "zlib"
    assert c.decompress(c.compress(b"abc" * 100)) == b"abc" * 100


def test_invalid_parameters() -> None:
    with pytest.raises(ValueError):
        CodecZlib(level=10)
    with pytest.raises(ValueError):
        CodecZlib(container="brotli")
    with pytest.raises(TypeError):
        CodecZlib().compress("text")  # type: ignore[arg-type]


def test_corrupt_stream() -> None:
    with pytest.raises(MalformedEncoding):
        CodecZlib().decompress(b"definitely not gzip")


def test_zstd_roundtrip() -> None:
    pytest.importorskip("zstandard")
    from smartcomp.core.codec_zstd import CodecZstd

    data = b"zstd zstd zstd " * 50
    c = CodecZstd(level=3)
    assert c.decompress(c.compress(data), out_size=len(data)) == data
    with pytest.raises(MalformedEncoding):
        c.decompress(b"not a zstd frame", out_size=16)


def test_zstd_missing_module_is_unsupported(monkeypatch: pytest.MonkeyPatch) -> None:
    import smartcomp.core.codec_zstd as codec_zstd

    monkeypatch.setattr(codec_zstd, "zstd", None)
    assert not codec_zstd.have_zstd()
    with pytest.raises(UnsupportedCodec):
        codec_zstd.CodecZstd().compress(b"data")


def test_resolve_fallback_falls_back_to_gzip_when_zstd_missing() -> None:
    assert resolve_fallback_id("zstd", have_zstd=False) == "gzip"
    assert resolve_fallback_id("zlib", have_zstd=False) == "zlib"
    assert resolve_fallback_id("gzip", have_zstd=False) == "gzip"


def test_resolve_fallback_keeps_zstd_when_available() -> None:
    assert resolve_fallback_id("zstd", have_zstd=True) == "zstd"
