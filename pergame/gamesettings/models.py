"""Typed data models for per-title game settings."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Protocol


# ── Settings fields ─────────────────────────────────────────────────────
# Enum values are the keys written under ``[GAMESETTINGS]``.

SECTION = "GAMESETTINGS"


class SettingField(Enum):
    DIRECT_BOOT = "DIRECT_BOOT"
    RUN_MODE = "DSI_MODE"
    LANGUAGE = "LANGUAGE"
    CPU_BOOST = "BOOST_CPU"
    VRAM_BOOST = "BOOST_VRAM"
    BOOTSTRAP_VARIANT = "BOOTSTRAP_FILE"
    SUPPRESS_AP_NOTICE = "NO_SHOW_AP_MSG"

    @property
    def key(self) -> str:
        return self.value


class TitleClass(Enum):
    """Classification of a title as seen by the settings editor."""
    HOMEBREW = "homebrew"
    DIGITAL_TITLE = "digital"
    LAUNCH_ARGUMENT = "launcharg"
    OTHER = "other"


# ── Value constants ─────────────────────────────────────────────────────

RUN_MODE_DS = 0
RUN_MODE_DSI = 1
RUN_MODE_DSI_FORCED = 2

LANGUAGE_SYSTEM = -1
LANGUAGE_NAMES: dict[int, str] = {
    0: "Japanese",
    1: "English",
    2: "French",
    3: "German",
    4: "Italian",
    5: "Spanish",
}

BOOTSTRAP_RELEASE = 0
BOOTSTRAP_NIGHTLY = 1


# ── Runtime context ─────────────────────────────────────────────────────

class HardwareCapabilityProbe(Protocol):
    def has_extended_system_config(self) -> bool: ...

    def is_dsi_capable(self) -> bool: ...

    def bootstrap_helper_active(self) -> bool: ...


@dataclass(frozen=True)
class HardwareCapabilities:
    """Snapshot of what the host can do; read-only for a whole session."""
    has_extended_config: bool = False
    is_dsi_capable: bool = False
    bootstrap_helper_active: bool = False

    @classmethod
    def probe(cls, probe: HardwareCapabilityProbe) -> HardwareCapabilities:
        return cls(
            has_extended_config=probe.has_extended_system_config(),
            is_dsi_capable=probe.is_dsi_capable(),
            bootstrap_helper_active=probe.bootstrap_helper_active(),
        )


@dataclass(frozen=True)
class GlobalDefaults:
    """Process-wide values a title inherits when it has no override."""
    run_mode: int = RUN_MODE_DS
    boost_cpu: int = 0
    boost_vram: int = 0
    bootstrap_variant: int = BOOTSTRAP_RELEASE
    game_language: int = LANGUAGE_SYSTEM
    system_language: int = 1


@dataclass(frozen=True)
class RuntimeContext:
    capabilities: HardwareCapabilities = field(default_factory=HardwareCapabilities)
    defaults: GlobalDefaults = field(default_factory=GlobalDefaults)
    storage_root: Path = Path(".")
    secondary_device: bool = False


@dataclass(frozen=True)
class SettingsContext:
    """Everything the catalog and resolver need to know about one title.

    The predicate inputs (``is_homebrew``, ``is_digital_or_launch_arg`` and
    the three capability flags) are derived properties so that a context can
    only be built from a classification plus a :class:`RuntimeContext`.
    """
    title_class: TitleClass = TitleClass.OTHER
    capabilities: HardwareCapabilities = field(default_factory=HardwareCapabilities)
    defaults: GlobalDefaults = field(default_factory=GlobalDefaults)
    secondary_device: bool = False

    @classmethod
    def for_title(cls, title_class: TitleClass, runtime: RuntimeContext) -> SettingsContext:
        return cls(
            title_class=title_class,
            capabilities=runtime.capabilities,
            defaults=runtime.defaults,
            secondary_device=runtime.secondary_device,
        )

    @property
    def is_homebrew(self) -> bool:
        return self.title_class is TitleClass.HOMEBREW

    @property
    def is_digital_or_launch_arg(self) -> bool:
        return self.title_class in (TitleClass.DIGITAL_TITLE, TitleClass.LAUNCH_ARGUMENT)

    @property
    def has_extended_config(self) -> bool:
        return self.capabilities.has_extended_config

    @property
    def is_dsi_capable(self) -> bool:
        return self.capabilities.is_dsi_capable

    @property
    def bootstrap_helper_active(self) -> bool:
        return self.capabilities.bootstrap_helper_active


# ── Stored overrides ────────────────────────────────────────────────────

@dataclass
class PerTitleOverride:
    """Explicit per-title values.

    A field missing from *values* inherits its computed default; there is no
    sentinel integer in memory.  Sentinels only exist in the file format.
    """
    values: dict[SettingField, int] = field(default_factory=dict)

    def get(self, setting: SettingField) -> int | None:
        return self.values.get(setting)

    def set(self, setting: SettingField, value: int | None) -> None:
        if not isinstance(setting, SettingField):
            raise ValueError(f"Unknown setting {setting!r}")
        if value is None:
            self.values.pop(setting, None)
        else:
            self.values[setting] = int(value)

    def is_inherited(self, setting: SettingField) -> bool:
        return setting not in self.values

    def copy(self) -> PerTitleOverride:
        return PerTitleOverride(values=dict(self.values))

    def validate(self) -> None:
        from .catalog import field_spec

        for setting, value in self.values.items():
            spec = field_spec(setting)
            if value not in spec.values:
                raise ValueError(
                    f"{setting.key} must be one of {spec.values}, got {value}"
                )
