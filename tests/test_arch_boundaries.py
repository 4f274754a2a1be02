from __future__ import annotations

import ast
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

PACKAGE_ROOT = "smartcomp"

# Orchestration layer. Nothing below it may import it.
ORCH_PREFIXES: tuple[str, ...] = ("smartcomp.engine",)

# Codecs only know about the error taxonomy and each other's base module:
# metadata (record) and configuration belong to the orchestration side.
CORE_PREFIX = "smartcomp.core"
CORE_ALLOWED: tuple[str, ...] = ("smartcomp.core", "smartcomp.errors")


@dataclass(frozen=True)
class ImportEdge:
    src: str
    dst: str
    file: Path
    lineno: int


def _has_prefix(mod: str, prefixes: tuple[str, ...]) -> bool:
    return any(mod == p or mod.startswith(p + ".") for p in prefixes)


def _module_name_from_path(src_dir: Path, py_file: Path) -> str | None:
    try:
        rel = py_file.relative_to(src_dir)
    except ValueError:
        return None

    parts = list(rel.parts)
    if not parts or parts[0] != PACKAGE_ROOT:
        return None

    if py_file.name == "__init__.py":
        parts = parts[:-1]
    else:
        parts[-1] = py_file.stem
    return ".".join(parts) if parts else None


def _resolve_relative(current_mod: str, level: int, module: str | None) -> str | None:
    if level <= 0:
        return module

    base = current_mod.split(".")[:-1]
    if level > len(base):
        return None
    base = base[: len(base) - level + 1]
    if module:
        return ".".join(base + module.split("."))
    return ".".join(base)


def _iter_import_edges(src_dir: Path) -> Iterable[ImportEdge]:
    for py in src_dir.rglob("*.py"):
        mod = _module_name_from_path(src_dir, py)
        if not mod:
            continue

        tree = ast.parse(py.read_text(encoding="utf-8"), filename=str(py))
        for node in ast.walk(tree):
            if isinstance(node, ast.Import):
                for alias in node.names:
                    if _has_prefix(alias.name, (PACKAGE_ROOT,)):
                        yield ImportEdge(mod, alias.name, py, getattr(node, "lineno", 0))
            elif isinstance(node, ast.ImportFrom):
                if node.module is None and node.level == 0:
                    continue
                abs_mod = _resolve_relative(mod, node.level, node.module)
                if abs_mod and _has_prefix(abs_mod, (PACKAGE_ROOT,)):
                    yield ImportEdge(mod, abs_mod, py, getattr(node, "lineno", 0))


def _src_dir() -> Path:
    src_dir = Path(__file__).resolve().parents[1] / "src"
    if not src_dir.is_dir():
        raise AssertionError(f"Expected src/ directory at: {src_dir}")
    return src_dir


def _report(title: str, violations: list[ImportEdge], fix: str) -> None:
    if not violations:
        return
    lines = [title]
    for v in sorted(violations, key=lambda e: (str(e.file), e.lineno, e.src, e.dst)):
        lines.append(f"  {v.file}:{v.lineno}  {v.src}  ->  {v.dst}")
    lines.append("")
    lines.append(f"Fix: {fix}")
    raise AssertionError("\n".join(lines))


def test_no_low_level_imports_orchestrator() -> None:
    violations = [
        e
        for e in _iter_import_edges(_src_dir())
        if e.src != e.dst
        and not _has_prefix(e.src, ORCH_PREFIXES)
        and _has_prefix(e.dst, ORCH_PREFIXES)
    ]
    _report(
        "Forbidden imports detected (LOW -> ORCH):",
        violations,
        "move high-level logic out of LOW modules, or invert the dependency.",
    )


def test_codecs_stay_metadata_free() -> None:
    violations = [
        e
        for e in _iter_import_edges(_src_dir())
        if _has_prefix(e.src, (CORE_PREFIX,)) and not _has_prefix(e.dst, CORE_ALLOWED)
    ]
    _report(
        "Forbidden imports detected (core -> record/config):",
        violations,
        "codecs return plain results; the orchestrator turns them into records.",
    )
