"""Typed errors for smartcomp.

Single source of truth for error codes lives here.

Policy:
- Errors are small and boring.
- Callers match on the exception class; ``code`` is the stable string form
  (handy when a collaborator needs to put it in a JSON response).
- docs/error_codes.md is generated from this module (scripts/gen_error_codes_md.py).
"""

from __future__ import annotations

from dataclasses import dataclass

# -------------------------
# Error codes (single source)
# -------------------------

CODE_GENERIC = "GENERIC"
CODE_USAGE = "USAGE"
CODE_EMPTY_INPUT = "EMPTY_INPUT"
CODE_UNSUPPORTED_CODEC = "UNSUPPORTED_CODEC"
CODE_MALFORMED_ENCODING = "MALFORMED_ENCODING"
CODE_SIZE_MISMATCH = "SIZE_MISMATCH"
CODE_CODEC_EXECUTION_FAILURE = "CODEC_EXECUTION_FAILURE"
CODE_COMPRESSION_FAILED = "COMPRESSION_FAILED"


@dataclass(frozen=True, slots=True)
class ErrorCodeInfo:
    code: str
    description: str
    surfaced: bool


ERROR_CODES: tuple[ErrorCodeInfo, ...] = (
    ErrorCodeInfo(CODE_GENERIC, "Unexpected failure", True),
    ErrorCodeInfo(CODE_USAGE, "Usage/config error (invalid config, bad arguments)", True),
    ErrorCodeInfo(CODE_EMPTY_INPUT, "Zero-length payload offered to a codec", True),
    ErrorCodeInfo(CODE_UNSUPPORTED_CODEC, "Unknown codec identifier", True),
    ErrorCodeInfo(
        CODE_MALFORMED_ENCODING,
        "Structurally invalid compressed stream (odd RLE length, dangling prefix, bad token)",
        True,
    ),
    ErrorCodeInfo(
        CODE_SIZE_MISMATCH, "Decoded length differs from the size declared in metadata", True
    ),
    ErrorCodeInfo(
        CODE_CODEC_EXECUTION_FAILURE,
        "Internal fault of a primary codec (replaced by the fallback, never surfaced alone)",
        False,
    ),
    ErrorCodeInfo(CODE_COMPRESSION_FAILED, "Primary codec and fallback both failed", True),
)

_ERROR_CODE_BY_CODE: dict[str, ErrorCodeInfo] = {e.code: e for e in ERROR_CODES}


def error_code_info(code: str) -> ErrorCodeInfo | None:
    return _ERROR_CODE_BY_CODE.get(str(code))


def render_error_codes_markdown() -> str:
    """Render docs/error_codes.md content."""
    lines: list[str] = []
    lines.append("# Error codes\n")
    lines.append("> GENERATED FILE - do not edit manually.\n")
    lines.append("> Source of truth: `src/smartcomp/errors.py` (ERROR_CODES).\n")
    lines.append("> Regenerate: `python scripts/gen_error_codes_md.py`.\n\n")
    lines.append("| Code | Surfaced to caller | Meaning |\n")
    lines.append("|---|:---:|---|\n")
    for e in ERROR_CODES:
        lines.append(f"| `{e.code}` | {'yes' if e.surfaced else 'no'} | {e.description} |\n")
    lines.append("\n## Notes\n")
    lines.append("- Every error extends `SmartCompError` and carries a `code`.\n")
    lines.append(
        "- `CODEC_EXECUTION_FAILURE` is caught by the orchestrator and replaced by the "
        "fallback codec; only `COMPRESSION_FAILED` reaches the caller.\n"
    )
    lines.append("- Decoding never falls back: `MALFORMED_ENCODING` is always surfaced.\n")
    return "".join(lines)


# ---------------
# Typed exceptions
# ---------------


class SmartCompError(Exception):
    """Base error for smartcomp."""

    code: str = CODE_GENERIC


class UsageError(SmartCompError):
    code = CODE_USAGE


class ConfigError(UsageError, ValueError):
    pass


class EmptyInput(SmartCompError, ValueError):
    code = CODE_EMPTY_INPUT


class UnsupportedCodec(SmartCompError, ValueError):
    code = CODE_UNSUPPORTED_CODEC


class MalformedEncoding(SmartCompError, ValueError):
    code = CODE_MALFORMED_ENCODING


class SizeMismatch(MalformedEncoding):
    code = CODE_SIZE_MISMATCH


class CodecExecutionFailure(SmartCompError):
    code = CODE_CODEC_EXECUTION_FAILURE


class CompressionFailed(SmartCompError):
    code = CODE_COMPRESSION_FAILED
