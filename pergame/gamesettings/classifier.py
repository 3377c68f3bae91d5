"""Classify titles and read the little information the editor displays.

Titles are ROM images, or indirection files pointing at one:

* ``.argv``      -- whitespace-separated arguments, ``#`` starts a comment;
  the first token is the underlying title.
* ``.launcharg`` -- like ``.argv`` but the first token is a digital title
  directory whose executable lives at ``content/000000XX.app``.

When an indirection cannot be resolved the raw path is used as-is.
"""

from __future__ import annotations

import logging
import struct
from dataclasses import dataclass
from pathlib import Path

from .models import TitleClass

log = logging.getLogger(__name__)

ARGV_SUFFIX = ".argv"
LAUNCHARG_SUFFIX = ".launcharg"

# ── ROM header layout (little-endian) ───────────────────────────────────

_HEADER_SIZE = 0x40
_OFF_GAME_CODE = 0x0C
_OFF_UNIT_CODE = 0x12
_OFF_ARM9 = 0x20        # rom_offset, entry, ram_address, size
_OFF_ARM7 = 0x30        # rom_offset, entry, ram_address, size

_UNIT_CODE_DSI = 0x02
_ARM7_IWRAM = 0x037F0000
_HOMEBREW_GAME_CODE = "####"
_DIGITAL_CODE_PREFIXES = ("K", "H")

# Module parameters end with this pair; the SDK version word precedes it.
_MODULE_PARAMS_SIGNATURE = struct.pack("<II", 0xDEC00621, 0x2106C0DE)
_SDK_SCAN_LIMIT = 4 * 1024 * 1024

_SDK_LABELS: tuple[tuple[int, int, str], ...] = (
    (0x1000000, 0x2000000, "SDK ver: 1"),
    (0x2000000, 0x3000000, "SDK ver: 2"),
    (0x3000000, 0x4000000, "SDK ver: 3"),
    (0x4000000, 0x5000000, "SDK ver: 4"),
    (0x5000000, 0x6000000, "SDK ver: 5 (TWLSDK)"),
)


@dataclass(frozen=True)
class RomHeader:
    game_code: str
    unit_code: int
    arm9_rom_offset: int
    arm9_size: int
    arm7_entry: int
    arm7_ram_address: int

    @property
    def is_homebrew(self) -> bool:
        if self.game_code == _HOMEBREW_GAME_CODE:
            return True
        return self.arm7_entry >= _ARM7_IWRAM and self.arm7_ram_address >= _ARM7_IWRAM

    @property
    def is_digital(self) -> bool:
        return bool(self.unit_code & _UNIT_CODE_DSI) and self.game_code.startswith(
            _DIGITAL_CODE_PREFIXES
        )


@dataclass(frozen=True)
class TitleInfo:
    """Classification plus the identifiers shown in the settings header."""
    path: Path
    resolved_path: Path
    title_class: TitleClass
    game_code: str = ""
    sdk_version: int = 0

    @property
    def tid_text(self) -> str:
        return f"TID: {self.game_code or '????'}"

    @property
    def sdk_text(self) -> str:
        return sdk_version_label(self.sdk_version)

    @property
    def shows_sdk_version(self) -> bool:
        return self.title_class is not TitleClass.HOMEBREW


# ── Indirection files ───────────────────────────────────────────────────

def read_argv_file(path: str | Path) -> list[str]:
    """Return the argument tokens of an ``.argv``/``.launcharg`` file."""
    tokens: list[str] = []
    text = Path(path).read_text(encoding="utf-8", errors="replace")
    for line in text.splitlines():
        line = line.split("#", 1)[0]
        tokens.extend(line.split())
    return tokens


def _strip_trailing_slashes(target: str) -> str:
    stripped = target.rstrip("/")
    return stripped or target


def find_launcharg_app(title_dir: str | Path) -> Path | None:
    """Return the first ``content/000000XX.app`` existing under *title_dir*."""
    content = Path(title_dir) / "content"
    for ver in range(0x100):
        candidate = content / f"{ver:08x}.app"
        if candidate.exists():
            return candidate
    return None


def resolve_title_path(path: str | Path) -> Path:
    """Follow ``.argv``/``.launcharg`` indirection to the executable."""
    p = Path(path)
    suffix = p.suffix.lower()
    if suffix not in (ARGV_SUFFIX, LAUNCHARG_SUFFIX):
        return p
    try:
        tokens = read_argv_file(p)
    except OSError:
        log.debug("Could not read indirection file %s", p, exc_info=True)
        return p
    if not tokens:
        log.debug("Indirection file %s is empty", p)
        return p

    target = tokens[0]
    if suffix == LAUNCHARG_SUFFIX:
        app = find_launcharg_app(_strip_trailing_slashes(target))
        if app is None:
            log.debug("No content/*.app found for %s", target)
            return p
        return app
    return Path(target)


# ── Header inspection ───────────────────────────────────────────────────

def read_header(path: str | Path) -> RomHeader | None:
    try:
        with open(path, "rb") as fh:
            data = fh.read(_HEADER_SIZE)
    except OSError:
        log.debug("Could not read header of %s", path, exc_info=True)
        return None
    if len(data) < _HEADER_SIZE:
        return None

    game_code = data[_OFF_GAME_CODE:_OFF_GAME_CODE + 4].decode("ascii", errors="replace")
    arm9_rom_offset, _, _, arm9_size = struct.unpack_from("<4I", data, _OFF_ARM9)
    _, arm7_entry, arm7_ram_address, _ = struct.unpack_from("<4I", data, _OFF_ARM7)
    return RomHeader(
        game_code=game_code.rstrip("\x00"),
        unit_code=data[_OFF_UNIT_CODE],
        arm9_rom_offset=arm9_rom_offset,
        arm9_size=arm9_size,
        arm7_entry=arm7_entry,
        arm7_ram_address=arm7_ram_address,
    )


def read_sdk_version(path: str | Path, header: RomHeader | None = None) -> int:
    """Return the SDK version stored in the ARM9 module parameters, or 0."""
    if header is None:
        header = read_header(path)
    if header is None or header.is_homebrew:
        return 0
    size = min(header.arm9_size, _SDK_SCAN_LIMIT)
    try:
        with open(path, "rb") as fh:
            fh.seek(header.arm9_rom_offset)
            arm9 = fh.read(size)
    except OSError:
        return 0
    idx = arm9.find(_MODULE_PARAMS_SIGNATURE)
    if idx < 4:
        return 0
    (version,) = struct.unpack_from("<I", arm9, idx - 4)
    return version


def sdk_version_label(version: int) -> str:
    for low, high, label in _SDK_LABELS:
        if low < version < high:
            return label
    return "SDK ver: ?"


# ── Classification ──────────────────────────────────────────────────────

def classify(path: str | Path) -> TitleClass:
    return read_title_info(path).title_class


def read_title_info(path: str | Path) -> TitleInfo:
    p = Path(path)
    resolved = resolve_title_path(p)
    header = read_header(resolved)

    if p.suffix.lower() == LAUNCHARG_SUFFIX:
        title_class = TitleClass.LAUNCH_ARGUMENT
    elif header is None:
        title_class = TitleClass.OTHER
    elif header.is_homebrew:
        title_class = TitleClass.HOMEBREW
    elif header.is_digital:
        title_class = TitleClass.DIGITAL_TITLE
    else:
        title_class = TitleClass.OTHER

    sdk_version = 0
    if header is not None and title_class is not TitleClass.HOMEBREW:
        sdk_version = read_sdk_version(resolved, header)

    log.debug("Classified %s as %s (resolved %s)", p, title_class.value, resolved)
    return TitleInfo(
        path=p,
        resolved_path=resolved,
        title_class=title_class,
        game_code=header.game_code if header else "",
        sdk_version=sdk_version,
    )
