#!/usr/bin/env python3
"""
Container entrypoint: release, then hand the process over to gunicorn.

Environment:
    PORT              listen port (default 8080)
    WEB_CONCURRENCY   gunicorn workers (default 2)
    GUNICORN_TIMEOUT  worker timeout in seconds (default 60)
    SKIP_RELEASE      "1" to skip migrations and seeding

Usage:
    python scripts/start.py
"""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

WSGI_APP = "app.wsgi:app"


@dataclass(frozen=True)
class ServeOptions:
    port: int
    workers: int
    timeout: int
    skip_release: bool


def _int_option(env: Mapping[str, str], name: str, default: int, low: int, high: int) -> int:
    raw = (env.get(name) or "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}.") from None
    if not low <= value <= high:
        raise ValueError(f"{name} must be between {low} and {high}, got {value}.")
    return value


def serve_options(env: Mapping[str, str]) -> ServeOptions:
    return ServeOptions(
        port=_int_option(env, "PORT", 8080, 1, 65535),
        workers=_int_option(env, "WEB_CONCURRENCY", 2, 1, 64),
        timeout=_int_option(env, "GUNICORN_TIMEOUT", 60, 1, 3600),
        skip_release=(env.get("SKIP_RELEASE") or "").strip() == "1",
    )


def gunicorn_argv(opts: ServeOptions) -> list[str]:
    # --preload imports the app once in the master; create_app disposes the engine after fork.
    return [
        "gunicorn",
        WSGI_APP,
        "--bind", f"0.0.0.0:{opts.port}",
        "--workers", str(opts.workers),
        "--timeout", str(opts.timeout),
        "--preload",
        "--access-logfile", "-",
        "--error-logfile", "-",
    ]


def main() -> None:
    try:
        opts = serve_options(os.environ)
    except ValueError as e:
        print(f"[start] {e}", flush=True)
        sys.exit(2)

    if not opts.skip_release:
        from scripts.release import run_release

        try:
            run_release()
        except Exception as e:
            print(f"[start] release failed: {e}", flush=True)
            sys.exit(1)

    argv = gunicorn_argv(opts)
    print(f"[start] {' '.join(argv)}", flush=True)
    os.execvp(argv[0], argv)


if __name__ == "__main__":
    main()
