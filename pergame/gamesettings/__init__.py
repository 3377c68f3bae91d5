"""Per-title game settings for pergame.

Loads, resolves, edits and stores the settings a single title may override
(run mode, CPU/VRAM boost, language, bootstrap variant, direct boot).  All
operations here are pure Python; rendering and input live in
:mod:`pergame.ui` and :mod:`pergame.core`.

Quick start::

    from pergame.gamesettings import (
        SettingsContext, SettingsStore, open_editor, read_title_info, title_key,
    )

    info = read_title_info("roms/Game.nds")
    ctx = SettingsContext.for_title(info.title_class, runtime)
    session = open_editor(title_key(info.path), ctx, SettingsStore(runtime.storage_root))
"""

from .catalog import (
    COUPLING_RULES,
    FIELD_SPECS,
    CouplingRule,
    FieldSpec,
    field_spec,
    is_info_only,
    save_fields,
    visible_fields,
)
from .classifier import TitleInfo, classify, read_title_info, resolve_title_path
from .editor import EditorRow, EditorSession, EditorState, InputEvent, open_editor
from .models import (
    GlobalDefaults,
    HardwareCapabilities,
    PerTitleOverride,
    RuntimeContext,
    SettingField,
    SettingsContext,
    TitleClass,
)
from .repository import SettingsStore, resolve_settings_path, title_key
from .resolver import (
    default_value,
    display_value,
    effective_language,
    effective_settings,
    effective_value,
    forced_values,
    is_editable,
)

__all__ = [
    "COUPLING_RULES",
    "FIELD_SPECS",
    "CouplingRule",
    "EditorRow",
    "EditorSession",
    "EditorState",
    "FieldSpec",
    "GlobalDefaults",
    "HardwareCapabilities",
    "InputEvent",
    "PerTitleOverride",
    "RuntimeContext",
    "SettingField",
    "SettingsContext",
    "SettingsStore",
    "TitleClass",
    "TitleInfo",
    "classify",
    "default_value",
    "display_value",
    "effective_language",
    "effective_settings",
    "effective_value",
    "field_spec",
    "forced_values",
    "is_editable",
    "is_info_only",
    "open_editor",
    "read_title_info",
    "resolve_settings_path",
    "resolve_title_path",
    "save_fields",
    "title_key",
    "visible_fields",
]
