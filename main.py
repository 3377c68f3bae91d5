# Copyright (C) 2025-2026 pergame Contributors
# SPDX-License-Identifier: AGPL-3.0-or-later
# See LICENSE for the full text.

import argparse
import logging
import sys
import traceback
from datetime import datetime, timezone
from pathlib import Path

_ROOT = Path(__file__).resolve().parent
_CACHE_DIR = _ROOT / "cache"
_CRASH_LOG = _CACHE_DIR / "latest.log"
_DEBUG_LOG = _CACHE_DIR / "pergame_debug.log"
_LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def _crash_report(exc_type, exc_value, exc_tb) -> str:
    stamp = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC")
    lines = [
        "pergame crash log",
        "-----------------",
        f"Timestamp : {stamp}",
        f"Python    : {sys.version.split()[0]} ({sys.platform})",
        f"Arguments : {' '.join(sys.argv[1:]) or '(none)'}",
        f"Exception : {exc_type.__name__}: {exc_value}",
        "",
    ]
    return "\n".join(lines) + "".join(
        traceback.format_exception(exc_type, exc_value, exc_tb)
    )


def _install_crash_logger() -> None:
    """Dump unhandled exceptions to ``cache/latest.log`` before dying."""
    previous = sys.excepthook

    def _hook(exc_type, exc_value, exc_tb):
        try:
            _CACHE_DIR.mkdir(parents=True, exist_ok=True)
            _CRASH_LOG.write_text(
                _crash_report(exc_type, exc_value, exc_tb), encoding="utf-8",
            )
        except OSError:
            pass
        previous(exc_type, exc_value, exc_tb)

    sys.excepthook = _hook


def _configure_logging(level_name: str | None) -> None:
    """WARNING to stderr by default; *level_name* also tees to the debug log."""
    if level_name is None:
        logging.basicConfig(level=logging.WARNING, force=True)
        return
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    try:
        _CACHE_DIR.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(str(_DEBUG_LOG), encoding="utf-8"))
    except OSError:
        pass
    logging.basicConfig(
        level=getattr(logging, level_name, logging.WARNING),
        format=_LOG_FORMAT,
        handlers=handlers,
        force=True,
    )


def _requested_log_level(debug_flag: bool) -> str | None:
    if debug_flag:
        return "DEBUG"
    try:
        from pergame.core.config import Config
        cfg = Config.load()
    except Exception:
        return None
    return cfg.log_level() if cfg.debug_logging else None


def _parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="pergame",
        description="Edit the per-title settings of a game.",
    )
    parser.add_argument("title", help="ROM, .argv or .launcharg file")
    parser.add_argument(
        "--root",
        help="storage root holding settings/gamesettings (overrides the config)",
    )
    parser.add_argument(
        "--debug", action="store_true", help="log at DEBUG level to the debug log",
    )
    return parser.parse_args(argv)


def main():
    _install_crash_logger()
    args = _parse_args(sys.argv[1:])
    _configure_logging(_requested_log_level(args.debug))

    from pergame.app import PerGameApp
    app = PerGameApp(sys.argv[:1], args.title, storage_root=args.root)
    sys.exit(app.run())


if __name__ == "__main__":
    main()
