#!/usr/bin/env python3
"""Codec benchmark tool.

Runs compress -> decompress -> compare for every codec id over a file or a
directory tree, collecting timing, sizes and peak RSS as JSON lines.

Usage example:
  python tools/bench_codecs.py /path/in --config @smartcomp.json --iters 3

Notes:
- Uses internal APIs (no subprocess). Run inside repo venv.
- Content class comes from the file extension (TEXT_EXTENSIONS), like the
  upload service does.
"""

from __future__ import annotations

import argparse
import json
import resource
import time
from pathlib import Path
from typing import Any

TEXT_EXTENSIONS = {".txt", ".csv", ".json", ".html", ".css", ".js", ".md", ".py"}


def _peak_rss_kb() -> int:
    # Linux: ru_maxrss is KB
    return int(resource.getrusage(resource.RUSAGE_SELF).ru_maxrss)


def _iter_files(root: Path) -> list[Path]:
    if root.is_file():
        return [root]
    return sorted(p for p in root.rglob("*") if p.is_file())


def main(argv: list[str] | None = None) -> int:
    ap = argparse.ArgumentParser(prog="bench_codecs.py", description="smartcomp codec benchmark")
    ap.add_argument("input", type=Path, help="File or directory")
    ap.add_argument("--config", default=None, help="Orchestrator config (@file.json or inline JSON)")
    ap.add_argument(
        "--codecs", default="huffman,rle,lz77,gzip", help="Comma-separated codec ids"
    )
    ap.add_argument("--iters", type=int, default=1)
    ap.add_argument(
        "--max-bytes",
        type=int,
        default=1 << 20,
        help="Skip files larger than this (lz77 search is quadratic in the window)",
    )
    ns = ap.parse_args(argv)

    from smartcomp.config import OrchestratorConfig, load_config
    from smartcomp.engine.orchestrator import Orchestrator

    inp = ns.input.resolve()
    if not inp.exists():
        raise SystemExit(f"invalid input: {inp}")

    cfg = load_config(ns.config) if ns.config else OrchestratorConfig()
    orch = Orchestrator(cfg)
    codecs = [c.strip() for c in str(ns.codecs).split(",") if c.strip()]

    rows: list[dict[str, Any]] = []
    t0_all = time.perf_counter()

    for path in _iter_files(inp):
        data = path.read_bytes()
        if not data or len(data) > int(ns.max_bytes):
            continue
        is_text = path.suffix.lower() in TEXT_EXTENSIONS

        for codec_id in codecs:
            for i in range(int(ns.iters)):
                t0 = time.perf_counter()
                res = orch.compress(data, codec_id, is_text=is_text)
                t_comp = time.perf_counter() - t0

                t1 = time.perf_counter()
                back = orch.decompress(res.artifact, res.record)
                t_decomp = time.perf_counter() - t1

                same = back.payload == data
                row = {
                    "file": str(path.relative_to(inp) if inp.is_dir() else path.name),
                    "iter": i + 1,
                    "codec": codec_id,
                    "algorithm": res.record.algorithm,
                    "identity": res.record.identity.kind,
                    "content_class": res.record.content_class,
                    "original_size": res.record.original_size,
                    "compressed_size": res.record.compressed_size,
                    "ratio": res.record.ratio,
                    "times_sec": {"compress": t_comp, "decompress": t_decomp},
                    "peak_rss_kb": _peak_rss_kb(),
                    "roundtrip_ok": same,
                }
                rows.append(row)
                print(json.dumps(row, ensure_ascii=False))
                if not same:
                    raise SystemExit(f"roundtrip mismatch: {path} ({codec_id})")

    total = time.perf_counter() - t0_all
    per_codec: dict[str, dict[str, float]] = {}
    for codec_id in codecs:
        mine = [r for r in rows if r["codec"] == codec_id]
        in_total = sum(r["original_size"] for r in mine)
        out_total = sum(r["compressed_size"] for r in mine)
        per_codec[codec_id] = {
            "runs": len(mine),
            "ratio": (in_total / out_total) if out_total else 0.0,
            "substituted": sum(1 for r in mine if r["identity"] == "fallback"),
        }

    summary = {
        "schema": "smartcomp.bench_codecs.v1",
        "rows": len(rows),
        "wall_total_sec": total,
        "per_codec": per_codec,
        "max_peak_rss_kb": max((r["peak_rss_kb"] for r in rows), default=0),
    }
    print(json.dumps(summary, ensure_ascii=False))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
