"""File-system store for per-title settings overrides.

Every title has at most one file::

    <storage_root>/settings/gamesettings/<title_key>.ini

holding a single ``[GAMESETTINGS]`` section.  A missing or unreadable file is
not an error: it simply means every field inherits its default.
"""

from __future__ import annotations

import logging
from pathlib import Path

from .catalog import FIELD_SPECS, field_spec
from .ini_io import patch_section, read_int, read_section
from .models import SECTION, PerTitleOverride, SettingField, SettingsContext
from .resolver import effective_value, values_to_persist

log = logging.getLogger(__name__)


def title_key(title_path: str | Path) -> str:
    """Return the settings key for *title_path*: its file name with the
    extension lower-cased (``Game.NDS`` -> ``Game.nds``)."""
    p = Path(title_path)
    if not p.suffix:
        return p.name
    return p.stem + p.suffix.lower()


def resolve_settings_dir(storage_root: str | Path) -> Path:
    return Path(storage_root) / "settings" / "gamesettings"


def resolve_settings_path(storage_root: str | Path, key: str) -> Path:
    return resolve_settings_dir(storage_root) / f"{key}.ini"


class SettingsStore:
    """Load and save :class:`PerTitleOverride` objects under *storage_root*."""

    def __init__(self, storage_root: str | Path):
        self.storage_root = Path(storage_root)

    def path_for(self, key: str) -> Path:
        return resolve_settings_path(self.storage_root, key)

    def _read(self, key: str) -> dict[str, str]:
        path = self.path_for(key)
        try:
            return read_section(path, SECTION)
        except (OSError, UnicodeError):
            log.debug("Could not read %s; using defaults", path, exc_info=True)
            return {}

    def load(self, key: str) -> PerTitleOverride:
        """Return the stored overrides for *key*.  Never raises."""
        raw = self._read(key)
        override = PerTitleOverride()
        for spec in FIELD_SPECS:
            value = read_int(raw, spec.key)
            if value is None:
                continue
            decoded = spec.decode(value)
            if decoded is None and value != spec.sentinel:
                log.debug("Discarding out-of-range %s=%d for %s", spec.key, value, key)
            override.set(spec.setting, decoded)
        return override

    def save(self, key: str, override: PerTitleOverride, ctx: SettingsContext) -> bool:
        """Write the save-policy subset of *override* for *ctx*.

        Keys outside the subset are left exactly as they are on disk.
        Returns ``False`` if the file could not be written.
        """
        updates = values_to_persist(override, ctx)
        if not updates:
            log.info(
                "Nothing to persist for %s (%s title); file left untouched",
                key, ctx.title_class.value,
            )
            return True

        path = self.path_for(key)
        try:
            patch_section(path, SECTION, updates)
        except OSError:
            log.warning("Failed to save game settings to %s", path, exc_info=True)
            return False
        log.debug("Wrote %d game settings to %s", len(updates), path)
        return True

    def effective_value(
        self,
        key: str,
        setting: SettingField,
        ctx: SettingsContext,
    ) -> int:
        """Resolve *setting* for *key* straight from storage."""
        return effective_value(setting, self.load(key), ctx)

    # ── Anti-piracy notice flag ─────────────────────────────────────────

    def should_show_anti_piracy_notice(self, key: str) -> bool:
        raw = self._read(key)
        value = read_int(raw, SettingField.SUPPRESS_AP_NOTICE.key)
        return not value

    def suppress_anti_piracy_notice(self, key: str) -> bool:
        """Persist "don't show the anti-piracy notice again" for *key*."""
        spec = field_spec(SettingField.SUPPRESS_AP_NOTICE)
        path = self.path_for(key)
        try:
            patch_section(path, SECTION, {spec.key: 1})
        except OSError:
            log.warning("Failed to save %s to %s", spec.key, path, exc_info=True)
            return False
        return True
