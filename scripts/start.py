#!/usr/bin/env python3
"""
Container entrypoint: release phase, then gunicorn serving app.wsgi:app.

PORT (default 8080) and WEB_CONCURRENCY (default 2) come from the environment.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


def _env_int(name: str, default: int, *, low: int, high: int) -> int:
    raw = (os.environ.get(name) or "").strip() or str(default)
    try:
        value = int(raw)
    except ValueError:
        raise SystemExit(f"ERROR: {name}={raw!r} is not an integer.")
    if not low <= value <= high:
        raise SystemExit(f"ERROR: {name}={value} must be between {low} and {high}.")
    return value


def gunicorn_argv(port: int, workers: int) -> list[str]:
    # --preload builds the app once; engines are disposed in each forked worker.
    return [
        "gunicorn",
        "app.wsgi:app",
        "--bind", f"0.0.0.0:{port}",
        "--workers", str(workers),
        "--timeout", "60",
        "--preload",
        "--access-logfile", "-",
        "--error-logfile", "-",
    ]


def main() -> None:
    port = _env_int("PORT", 8080, low=1, high=65535)
    workers = _env_int("WEB_CONCURRENCY", 2, low=1, high=32)

    from scripts.release import run_release

    run_release()
    argv = gunicorn_argv(port, workers)
    print(f"=== Starting {' '.join(argv)} ===", flush=True)
    os.execvp(argv[0], argv)


if __name__ == "__main__":
    main()
