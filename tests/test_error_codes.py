from __future__ import annotations

from smartcomp import errors


def test_every_exception_code_is_documented() -> None:
    classes = [
        errors.SmartCompError,
        errors.UsageError,
        errors.ConfigError,
        errors.EmptyInput,
        errors.UnsupportedCodec,
        errors.MalformedEncoding,
        errors.SizeMismatch,
        errors.CodecExecutionFailure,
        errors.CompressionFailed,
    ]
    for cls in classes:
        assert issubclass(cls, errors.SmartCompError)
        assert errors.error_code_info(cls.code) is not None, cls


def test_size_mismatch_is_a_malformed_encoding() -> None:
    assert issubclass(errors.SizeMismatch, errors.MalformedEncoding)
    assert issubclass(errors.MalformedEncoding, ValueError)


def test_render_markdown() -> None:
    md = errors.render_error_codes_markdown()
    assert md.startswith("# Error codes")
    for e in errors.ERROR_CODES:
        assert f"`{e.code}`" in md
    assert errors.error_code_info("NOPE") is None
