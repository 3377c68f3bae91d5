# Copyright (C) 2025-2026 pergame Contributors
# SPDX-License-Identifier: AGPL-3.0-or-later
# See LICENSE for the full text.

"""
Persistent application configuration for pergame.

Settings are stored as a JSON file in the OS-appropriate config directory.
Besides user preferences the file carries the capability flags and global
defaults the per-title settings editor inherits from; a real launcher would
probe the capabilities from hardware, here they are configured.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, fields, asdict
from pathlib import Path
from typing import Any

from PySide6.QtCore import QStandardPaths

from pergame.gamesettings.models import (
    GlobalDefaults,
    HardwareCapabilities,
    RuntimeContext,
)

log = logging.getLogger(__name__)


# -- Defaults --------------------------------------------------------------

_APP_DIR_NAME = "pergame"
_CONFIG_FILE  = "settings.json"

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


def _config_dir() -> Path:
    """Return (and create) the per-user config directory."""
    base = QStandardPaths.writableLocation(
        QStandardPaths.StandardLocation.GenericConfigLocation,
    )
    path = Path(base) / _APP_DIR_NAME
    path.mkdir(parents=True, exist_ok=True)
    return path


# -- Config data -----------------------------------------------------------

@dataclass
class Config:
    """All user-facing settings.  Serialises to / from JSON."""

    # Storage
    sd_root: str = ""                  # primary storage device root
    fat_root: str = ""                 # secondary storage device root
    secondary_device: bool = False     # titles are loaded from fat_root

    # Capabilities
    has_extended_config: bool = True
    dsi_capable: bool = True
    use_bootstrap: bool = True

    # Global defaults inherited by every title
    run_mode: int = 0                  # 0 DS / 1 DSi / 2 DSi forced
    boost_cpu: bool = False
    boost_vram: bool = False
    bootstrap_variant: int = 0         # 0 Release / 1 Nightly
    game_language: int = -1            # -1 System / 0-5
    system_language: int = 1           # 0-5 (English)

    # Input
    gamepad_nav: bool = False
    gamepad_index: int = 0

    # Debug
    debug_logging: bool = False
    debug_log_level: str = "WARNING"   # DEBUG / INFO / WARNING / ERROR

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    @classmethod
    def load(cls) -> Config:
        """Load from disk, returning defaults if the file is missing or bad.

        Unknown keys in the JSON (left over from older versions) are
        silently ignored so that adding or removing Config fields never
        causes a crash.
        """
        path = _config_dir() / _CONFIG_FILE
        if not path.exists():
            return cls()
        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
            return _safe_dataclass_from_dict(cls, raw)
        except Exception:
            log.warning("Ignoring unreadable config %s", path, exc_info=True)
            return cls()

    def save(self) -> None:
        """Write current settings to disk."""
        path = _config_dir() / _CONFIG_FILE
        data = asdict(self)
        path.write_text(
            json.dumps(data, indent=2, ensure_ascii=False),
            encoding="utf-8",
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def storage_root(self) -> Path:
        """Root of the device titles are currently loaded from."""
        root = self.fat_root if self.secondary_device else self.sd_root
        if root:
            return Path(root)
        return _config_dir()

    def log_level(self) -> str:
        level = self.debug_log_level.upper()
        return level if level in LOG_LEVELS else "WARNING"

    def capabilities(self) -> HardwareCapabilities:
        return HardwareCapabilities.probe(ConfigProbe(self))

    def global_defaults(self) -> GlobalDefaults:
        return GlobalDefaults(
            run_mode=self.run_mode,
            boost_cpu=int(self.boost_cpu),
            boost_vram=int(self.boost_vram),
            bootstrap_variant=self.bootstrap_variant,
            game_language=self.game_language,
            system_language=self.system_language,
        )

    def runtime_context(self) -> RuntimeContext:
        return RuntimeContext(
            capabilities=self.capabilities(),
            defaults=self.global_defaults(),
            storage_root=self.storage_root(),
            secondary_device=self.secondary_device,
        )


class ConfigProbe:
    """``HardwareCapabilityProbe`` answering from a :class:`Config`."""

    def __init__(self, config: Config):
        self._config = config

    def has_extended_system_config(self) -> bool:
        return self._config.has_extended_config

    def is_dsi_capable(self) -> bool:
        return self._config.dsi_capable

    def bootstrap_helper_active(self) -> bool:
        return self._config.use_bootstrap


def _safe_dataclass_from_dict(dataclass_type: type, value: dict[str, Any]):
    """Build dataclass instance while ignoring unknown serialized keys."""
    known = {f.name for f in fields(dataclass_type)}
    filtered = {k: v for k, v in value.items() if k in known}
    return dataclass_type(**filtered)
