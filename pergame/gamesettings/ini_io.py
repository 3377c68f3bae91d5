"""Read/write utilities for per-title ``.ini`` files.

The files are plain ``[SECTION]`` / ``KEY = value`` text as written by the
launcher family that shares them, so we operate on raw lines: unknown
sections, unknown keys and comments survive a patch untouched.
"""

from __future__ import annotations

import logging
import os
import re
import tempfile
from pathlib import Path

log = logging.getLogger(__name__)

_SECTION_RE = re.compile(r"^\[([^\]]+)\]$")
_COMMENT_PREFIXES = (";", "#")


def read_section(config_path: str | Path, section: str) -> dict[str, str]:
    """Return all key=value pairs inside *section*.

    Keys and values are stripped of surrounding whitespace.  A missing file
    yields an empty dict; read errors propagate to the caller.
    """
    path = Path(config_path)
    if not path.exists():
        return {}

    in_section = False
    values: dict[str, str] = {}
    for raw_line in path.read_text(encoding="utf-8", errors="replace").splitlines():
        line = raw_line.strip()
        if not line or line.startswith(_COMMENT_PREFIXES):
            continue
        m = _SECTION_RE.match(line)
        if m:
            in_section = m.group(1).strip() == section
            continue
        if not in_section or "=" not in line:
            continue
        key, _, val = line.partition("=")
        values[key.strip()] = val.strip()

    return values


def read_int(values: dict[str, str], key: str) -> int | None:
    """Parse ``values[key]`` as a signed integer, ``None`` if absent or bad."""
    raw = values.get(key)
    if raw is None:
        return None
    try:
        return int(raw, 10)
    except ValueError:
        log.debug("Ignoring malformed value %r for %s", raw, key)
        return None


def patch_section(
    config_path: str | Path,
    section: str,
    updates: dict[str, object],
) -> None:
    """Update *section* keys in *config_path* atomically.

    Only keys present in *updates* are changed; everything else is preserved
    line-for-line, except that repeated lines for an updated key are collapsed
    into the first.  The file is written via temp-file-and-rename so a reader
    never sees a half-written file.
    """
    path = Path(config_path)
    path.parent.mkdir(parents=True, exist_ok=True)

    if path.exists():
        original = path.read_text(encoding="utf-8", errors="replace")
    else:
        original = ""

    remaining = {k: str(v) for k, v in updates.items()}
    written: set[str] = set()
    out_lines: list[str] = []
    in_target = False
    section_found = False

    for raw_line in original.splitlines():
        stripped = raw_line.strip()
        m = _SECTION_RE.match(stripped)
        if m:
            if in_target and remaining:
                _insert_before_blank_tail(out_lines, _format_updates(remaining))
                remaining.clear()
            in_target = m.group(1).strip() == section
            if in_target:
                section_found = True
            out_lines.append(raw_line)
            continue

        if in_target and "=" in stripped and not stripped.startswith(_COMMENT_PREFIXES):
            key = stripped.partition("=")[0].strip()
            if key in remaining:
                out_lines.append(f"{key} = {remaining.pop(key)}")
                written.add(key)
                continue
            if key in written:
                # Readers keep the last occurrence; drop stale duplicates.
                continue

        out_lines.append(raw_line)

    if in_target and remaining:
        _insert_before_blank_tail(out_lines, _format_updates(remaining))
        remaining.clear()

    if not section_found and remaining:
        if out_lines and out_lines[-1].strip():
            out_lines.append("")
        out_lines.append(f"[{section}]")
        out_lines.extend(_format_updates(remaining))

    text = "\n".join(out_lines)
    if not text.endswith("\n"):
        text += "\n"

    fd, tmp = tempfile.mkstemp(
        suffix=".ini", dir=str(path.parent), prefix=".tmp_pergame_"
    )
    try:
        os.close(fd)
        Path(tmp).write_text(text, encoding="utf-8")
        Path(tmp).replace(path)
    except BaseException:
        try:
            os.unlink(tmp)
        except OSError:
            pass
        raise


def _insert_before_blank_tail(lines: list[str], new: list[str]) -> None:
    # Keep new keys inside the section rather than after its trailing blanks.
    idx = len(lines)
    while idx > 0 and not lines[idx - 1].strip():
        idx -= 1
    lines[idx:idx] = new


def _format_updates(kvs: dict[str, str]) -> list[str]:
    return [f"{k} = {v}" for k, v in kvs.items()]
