#!/usr/bin/env python3
"""
Container entry point: release phase, then gunicorn.

Environment:
  PORT             listen port (default 8080)
  WEB_CONCURRENCY  gunicorn workers (default 2)
  SKIP_RELEASE=1   start without running migrations/seed

Usage:
    python scripts/start.py
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

DEFAULT_PORT = 8080


def parse_port(raw: str | None) -> int:
    raw = (raw or "").strip()
    if not raw:
        return DEFAULT_PORT
    port = int(raw)
    if not 1 <= port <= 65535:
        raise ValueError(f"port out of range: {port}")
    return port


def gunicorn_argv(port: int, workers: int) -> list[str]:
    return [
        "gunicorn",
        "app.wsgi:app",
        "--bind", f"0.0.0.0:{port}",
        "--workers", str(workers),
        "--timeout", "60",
        "--access-logfile", "-",
        "--error-logfile", "-",
    ]


def main() -> None:
    try:
        port = parse_port(os.environ.get("PORT"))
        workers = int((os.environ.get("WEB_CONCURRENCY") or "2").strip())
    except ValueError as e:
        print(f"ERROR: invalid PORT/WEB_CONCURRENCY: {e}", flush=True)
        sys.exit(1)

    if os.environ.get("SKIP_RELEASE") != "1":
        from scripts.release import run_release

        try:
            run_release()
        except Exception as e:
            print(f"Release failed: {e}", flush=True)
            sys.exit(1)

    argv = gunicorn_argv(port, workers)
    print("exec " + " ".join(argv), flush=True)
    # gunicorn replaces this process and receives signals directly.
    os.execvp(argv[0], argv)


if __name__ == "__main__":
    main()
