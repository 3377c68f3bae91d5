"""Declarative catalog of the per-title settings fields.

Each :class:`FieldSpec` carries the field's value domain, its on-disk
"inherit" sentinel, display labels and two predicates over a
:class:`~pergame.gamesettings.models.SettingsContext`:

* ``visible``  -- the field is shown (and therefore editable) in the editor;
* ``persist``  -- a visible field is written back to storage on save.

Cross-field coupling lives in :data:`COUPLING_RULES` rather than in the
render or input paths.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from .models import (
    BOOTSTRAP_NIGHTLY,
    BOOTSTRAP_RELEASE,
    LANGUAGE_NAMES,
    LANGUAGE_SYSTEM,
    RUN_MODE_DS,
    RUN_MODE_DSI,
    RUN_MODE_DSI_FORCED,
    SettingField,
    SettingsContext,
)

DEFAULT_LABEL = "Default"

Predicate = Callable[[SettingsContext], bool]


@dataclass(frozen=True)
class FieldSpec:
    setting: SettingField
    label: str
    values: tuple[int, ...]
    value_labels: dict[int, str]
    sentinel: int
    order: int
    visible: Predicate
    persist: Predicate
    # Boolean fields cycle between their two values only; everything else
    # passes through "Default" once per lap.
    inherit_in_cycle: bool = True

    @property
    def key(self) -> str:
        return self.setting.key

    @property
    def domain(self) -> tuple[int | None, ...]:
        """Cyclic domain; ``None`` stands for "inherit the default"."""
        if self.inherit_in_cycle:
            return (None, *self.values)
        return self.values

    def label_for(self, value: int | None) -> str:
        if value is None:
            return DEFAULT_LABEL
        return self.value_labels.get(value, DEFAULT_LABEL)

    def next_value(self, current: int | None, effective: int) -> int | None:
        """Return the value following *current* in the cyclic domain.

        A boolean field that still inherits toggles away from *effective*,
        so two presses always land back on the value the user started from.
        """
        domain = self.domain
        if not self.inherit_in_cycle and current is None:
            current = effective
        try:
            idx = domain.index(current)
        except ValueError:
            idx = 0 if self.inherit_in_cycle else domain.index(effective)
        return domain[(idx + 1) % len(domain)]

    def decode(self, raw: int) -> int | None:
        """Map an integer read from storage to an in-memory value."""
        if self.inherit_in_cycle and raw == self.sentinel:
            return None
        if not self.inherit_in_cycle:
            return 1 if raw else 0
        if raw not in self.values:
            return None
        return raw

    def encode(self, value: int | None, effective: int) -> int:
        """Map an in-memory value to the integer written to storage."""
        if value is None:
            return effective if not self.inherit_in_cycle else self.sentinel
        return value


# ── Visibility / persistence predicates ─────────────────────────────────

def is_info_only(ctx: SettingsContext) -> bool:
    """No field is editable; the editor only shows title information."""
    if ctx.is_homebrew:
        return False
    if ctx.is_digital_or_launch_arg:
        return True
    return not ctx.bootstrap_helper_active and not ctx.has_extended_config


def _direct_boot_visible(ctx: SettingsContext) -> bool:
    return ctx.is_homebrew


def _run_mode_visible(ctx: SettingsContext) -> bool:
    return not is_info_only(ctx) and ctx.is_dsi_capable


def _language_visible(ctx: SettingsContext) -> bool:
    return not is_info_only(ctx) and not ctx.is_homebrew and ctx.bootstrap_helper_active


def _boost_visible(ctx: SettingsContext) -> bool:
    return not is_info_only(ctx) and ctx.has_extended_config


def _bootstrap_visible(ctx: SettingsContext) -> bool:
    if is_info_only(ctx) or not ctx.bootstrap_helper_active:
        return False
    if ctx.is_homebrew:
        return ctx.has_extended_config
    return True


def _never(ctx: SettingsContext) -> bool:
    return False


def _persist_direct_boot(ctx: SettingsContext) -> bool:
    return ctx.is_homebrew


def _persist_mode_fields(ctx: SettingsContext) -> bool:
    return ctx.is_dsi_capable


def _persist_bootstrap_fields(ctx: SettingsContext) -> bool:
    # Homebrew titles never persist these; neither do titles loaded from
    # the secondary device.  Non-DSi hosts persist nothing at all for
    # non-homebrew titles.
    return not ctx.is_homebrew and ctx.is_dsi_capable and not ctx.secondary_device


# ── Catalog ─────────────────────────────────────────────────────────────

FIELD_SPECS: tuple[FieldSpec, ...] = (
    FieldSpec(
        setting=SettingField.DIRECT_BOOT,
        label="Direct boot",
        values=(0, 1),
        value_labels={0: "No", 1: "Yes"},
        sentinel=-1,
        order=0,
        visible=_direct_boot_visible,
        persist=_persist_direct_boot,
        inherit_in_cycle=False,
    ),
    FieldSpec(
        setting=SettingField.LANGUAGE,
        label="Language",
        values=(LANGUAGE_SYSTEM, *sorted(LANGUAGE_NAMES)),
        value_labels={LANGUAGE_SYSTEM: "System", **LANGUAGE_NAMES},
        sentinel=-2,
        order=0,
        visible=_language_visible,
        persist=_persist_bootstrap_fields,
    ),
    FieldSpec(
        setting=SettingField.RUN_MODE,
        label="Run in",
        values=(RUN_MODE_DS, RUN_MODE_DSI, RUN_MODE_DSI_FORCED),
        value_labels={
            RUN_MODE_DS: "DS mode",
            RUN_MODE_DSI: "DSi mode",
            RUN_MODE_DSI_FORCED: "DSi mode (Forced)",
        },
        sentinel=-1,
        order=1,
        visible=_run_mode_visible,
        persist=_persist_mode_fields,
    ),
    FieldSpec(
        setting=SettingField.CPU_BOOST,
        label="ARM9 CPU Speed",
        values=(0, 1),
        value_labels={0: "67mhz (NTR)", 1: "133mhz (TWL)"},
        sentinel=-1,
        order=2,
        visible=_boost_visible,
        persist=_persist_mode_fields,
    ),
    FieldSpec(
        setting=SettingField.VRAM_BOOST,
        label="VRAM boost",
        values=(0, 1),
        value_labels={0: "Off", 1: "On"},
        sentinel=-1,
        order=3,
        visible=_boost_visible,
        persist=_persist_mode_fields,
    ),
    FieldSpec(
        setting=SettingField.BOOTSTRAP_VARIANT,
        label="Bootstrap",
        values=(BOOTSTRAP_RELEASE, BOOTSTRAP_NIGHTLY),
        value_labels={BOOTSTRAP_RELEASE: "Release", BOOTSTRAP_NIGHTLY: "Nightly"},
        sentinel=-1,
        order=4,
        visible=_bootstrap_visible,
        persist=_persist_bootstrap_fields,
    ),
    FieldSpec(
        setting=SettingField.SUPPRESS_AP_NOTICE,
        label="Anti-piracy notice",
        values=(1,),
        value_labels={1: "Hidden"},
        sentinel=0,
        order=5,
        visible=_never,
        persist=_never,
    ),
)

_SPECS_BY_FIELD: dict[SettingField, FieldSpec] = {s.setting: s for s in FIELD_SPECS}


def field_spec(setting: SettingField) -> FieldSpec:
    try:
        return _SPECS_BY_FIELD[setting]
    except KeyError:
        raise ValueError(f"Unknown setting {setting!r}") from None


def is_visible(setting: SettingField, ctx: SettingsContext) -> bool:
    return field_spec(setting).visible(ctx)


def visible_fields(ctx: SettingsContext) -> list[SettingField]:
    """Return the fields shown for *ctx*, in display order."""
    specs = sorted(FIELD_SPECS, key=lambda s: s.order)
    return [s.setting for s in specs if s.visible(ctx)]


def save_fields(ctx: SettingsContext) -> list[SettingField]:
    """Return the visible fields that are written back to storage for *ctx*."""
    return [f for f in visible_fields(ctx) if field_spec(f).persist(ctx)]


# ── Cross-field coupling ────────────────────────────────────────────────

@dataclass(frozen=True)
class CouplingRule:
    """When *applies* holds for the title's own *source* value, every field in
    *targets* is pinned to *forced_value* and becomes read-only.

    A source that inherits its global default never triggers the rule."""
    source: SettingField
    applies: Callable[[int, SettingsContext], bool]
    targets: tuple[SettingField, ...]
    forced_value: int
    description: str = ""


def _dsi_mode_selected(run_mode: int, ctx: SettingsContext) -> bool:
    return ctx.is_dsi_capable and run_mode >= RUN_MODE_DSI


COUPLING_RULES: tuple[CouplingRule, ...] = (
    CouplingRule(
        source=SettingField.RUN_MODE,
        applies=_dsi_mode_selected,
        targets=(SettingField.CPU_BOOST, SettingField.VRAM_BOOST),
        forced_value=1,
        description="DSi mode always runs at 133mhz with VRAM boost",
    ),
)
