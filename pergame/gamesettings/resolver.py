"""Merge stored per-title overrides with computed defaults.

The resolver is total: every field resolves to a concrete integer for every
context.  A stored value wins only while its field is editable, meaning
visible in the current context and not pinned by a coupling rule.
"""

from __future__ import annotations

from .catalog import COUPLING_RULES, field_spec, is_visible, save_fields
from .models import (
    LANGUAGE_SYSTEM,
    PerTitleOverride,
    SettingField,
    SettingsContext,
)


def default_value(setting: SettingField, ctx: SettingsContext) -> int:
    """Return the value *setting* takes when the title does not override it."""
    defaults = ctx.defaults
    if setting is SettingField.DIRECT_BOOT:
        # Titles on the secondary device boot directly unless told otherwise.
        return int(ctx.secondary_device)
    if setting is SettingField.RUN_MODE:
        return defaults.run_mode
    if setting is SettingField.LANGUAGE:
        return defaults.game_language
    if setting is SettingField.CPU_BOOST:
        return defaults.boost_cpu
    if setting is SettingField.VRAM_BOOST:
        return defaults.boost_vram
    if setting is SettingField.BOOTSTRAP_VARIANT:
        return defaults.bootstrap_variant
    if setting is SettingField.SUPPRESS_AP_NOTICE:
        return 0
    raise ValueError(f"Unknown setting {setting!r}")


def _stored_or_default(
    setting: SettingField,
    override: PerTitleOverride,
    ctx: SettingsContext,
) -> int:
    stored = override.get(setting)
    if stored is not None and is_visible(setting, ctx):
        return stored
    return default_value(setting, ctx)


def forced_values(
    override: PerTitleOverride,
    ctx: SettingsContext,
) -> dict[SettingField, int]:
    """Evaluate the coupling table once for *override* in *ctx*.

    Returns the fields pinned by an active rule, mapped to their forced value.
    """
    forced: dict[SettingField, int] = {}
    for rule in COUPLING_RULES:
        source_value = forced.get(rule.source)
        if source_value is None and is_visible(rule.source, ctx):
            source_value = override.get(rule.source)
        # An inherited source never forces anything.
        if source_value is None:
            continue
        if rule.applies(source_value, ctx):
            for target in rule.targets:
                forced[target] = rule.forced_value
    return forced


def is_read_only(
    setting: SettingField,
    override: PerTitleOverride,
    ctx: SettingsContext,
) -> bool:
    return setting in forced_values(override, ctx)


def is_editable(
    setting: SettingField,
    override: PerTitleOverride,
    ctx: SettingsContext,
) -> bool:
    return is_visible(setting, ctx) and not is_read_only(setting, override, ctx)


def effective_value(
    setting: SettingField,
    override: PerTitleOverride,
    ctx: SettingsContext,
) -> int:
    """Return the value the launcher would use for *setting*."""
    forced = forced_values(override, ctx)
    if setting in forced:
        return forced[setting]
    return _stored_or_default(setting, override, ctx)


def effective_settings(
    override: PerTitleOverride,
    ctx: SettingsContext,
) -> dict[SettingField, int]:
    forced = forced_values(override, ctx)
    result: dict[SettingField, int] = {}
    for setting in SettingField:
        if setting in forced:
            result[setting] = forced[setting]
        else:
            result[setting] = _stored_or_default(setting, override, ctx)
    return result


def effective_language(override: PerTitleOverride, ctx: SettingsContext) -> int:
    """Return a concrete language index, resolving "System" to the host's."""
    language = effective_value(SettingField.LANGUAGE, override, ctx)
    if language == LANGUAGE_SYSTEM:
        return ctx.defaults.system_language
    return language


def display_value(
    setting: SettingField,
    override: PerTitleOverride,
    ctx: SettingsContext,
) -> str:
    """Return the label shown for *setting*; sentinels render as "Default"."""
    spec = field_spec(setting)
    forced = forced_values(override, ctx)
    if setting in forced:
        return spec.label_for(forced[setting])
    stored = override.get(setting)
    if stored is None and not spec.inherit_in_cycle:
        return spec.label_for(default_value(setting, ctx))
    return spec.label_for(stored)


def values_to_persist(
    override: PerTitleOverride,
    ctx: SettingsContext,
) -> dict[str, int]:
    """Apply the save policy: ``{ini_key: encoded_value}`` for *ctx*.

    Only fields in :func:`~pergame.gamesettings.catalog.save_fields` appear;
    the stored (not forced) value is written so that leaving DSi mode later
    brings the user's boost choices back.
    """
    out: dict[str, int] = {}
    for setting in save_fields(ctx):
        spec = field_spec(setting)
        stored = override.get(setting)
        out[spec.key] = spec.encode(stored, default_value(setting, ctx))
    return out
