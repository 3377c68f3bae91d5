"""Cursor-driven editing state machine for one title's settings.

The session knows nothing about drawing: a renderer asks :meth:`rows` for
what to show and feeds :class:`InputEvent` values back through
:meth:`EditorSession.handle`, one per frame.

::

    IDLE --open_editor()--> BROWSING --BACK--> EXITING --saved--> IDLE
                               ^                  |
                               +--save failed-----+
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from .catalog import field_spec, visible_fields
from .models import PerTitleOverride, SettingField, SettingsContext
from .repository import SettingsStore
from .resolver import display_value, effective_value, forced_values

log = logging.getLogger(__name__)


class EditorState(Enum):
    IDLE = "idle"
    BROWSING = "browsing"
    EXITING = "exiting"


class InputEvent(Enum):
    UP = "up"
    DOWN = "down"
    ACTIVATE = "activate"
    BACK = "back"


@dataclass(frozen=True)
class EditorRow:
    setting: SettingField
    label: str
    value_text: str
    read_only: bool
    selected: bool


class EditorSession:
    """Transient state for one open editor.

    Holds a working copy of the title's overrides; the stored copy is only
    touched when :meth:`exit` saves.
    """

    def __init__(
        self,
        key: str,
        ctx: SettingsContext,
        override: PerTitleOverride,
        store: SettingsStore,
    ):
        self.key = key
        self.store = store
        self.override = override.copy()
        self.state = EditorState.BROWSING
        self.cursor = 0
        self.dirty = False
        self.save_failed = False
        self._ctx = ctx
        self._fields: list[SettingField] = visible_fields(ctx)
        self._forced: dict[SettingField, int] = forced_values(self.override, ctx)

    # -- Context -----------------------------------------------------------

    @property
    def context(self) -> SettingsContext:
        return self._ctx

    @property
    def fields(self) -> list[SettingField]:
        return list(self._fields)

    @property
    def info_only(self) -> bool:
        return not self._fields

    @property
    def current_field(self) -> SettingField | None:
        if not self._fields:
            return None
        return self._fields[self.cursor]

    def update_context(self, ctx: SettingsContext) -> None:
        """Recompute the visible fields after a classification or capability
        change, keeping the cursor on the same field when it survives."""
        if ctx == self._ctx:
            return
        current = self.current_field
        self._ctx = ctx
        self._fields = visible_fields(ctx)
        self._refresh_coupling()
        if current in self._fields:
            self.cursor = self._fields.index(current)
        else:
            self.cursor = 0

    def _refresh_coupling(self) -> None:
        self._forced = forced_values(self.override, self._ctx)

    # -- Queries -----------------------------------------------------------

    def is_read_only(self, setting: SettingField) -> bool:
        return setting in self._forced

    def effective_value(self, setting: SettingField) -> int:
        return effective_value(setting, self.override, self._ctx)

    def rows(self) -> list[EditorRow]:
        return [
            EditorRow(
                setting=setting,
                label=field_spec(setting).label,
                value_text=display_value(setting, self.override, self._ctx),
                read_only=self.is_read_only(setting),
                selected=idx == self.cursor,
            )
            for idx, setting in enumerate(self._fields)
        ]

    # -- Transitions -------------------------------------------------------

    def move(self, step: int) -> None:
        if self.state is not EditorState.BROWSING or not self._fields:
            return
        self.cursor = (self.cursor + step) % len(self._fields)

    def activate(self) -> bool:
        """Cycle the field under the cursor.  Returns ``True`` if it changed."""
        if self.state is not EditorState.BROWSING:
            return False
        setting = self.current_field
        if setting is None or self.is_read_only(setting):
            return False
        spec = field_spec(setting)
        current = self.override.get(setting)
        new_value = spec.next_value(current, self.effective_value(setting))
        self.override.set(setting, new_value)
        self.dirty = True
        self._refresh_coupling()
        log.debug(
            "%s: %s -> %s", setting.key, spec.label_for(current), spec.label_for(new_value),
        )
        return True

    def exit(self) -> bool:
        """Persist pending edits and close.

        Returns ``True`` once the session is closed.  On a failed save the
        session stays open and dirty so nothing is silently lost.
        """
        if self.state is EditorState.IDLE:
            return True
        self.state = EditorState.EXITING
        if self.dirty:
            if not self.store.save(self.key, self.override, self._ctx):
                self.save_failed = True
                self.state = EditorState.BROWSING
                return False
            self.dirty = False
        self.save_failed = False
        self.state = EditorState.IDLE
        return True

    def abandon(self) -> None:
        """Close without saving."""
        if self.dirty:
            log.info("Discarding unsaved game settings for %s", self.key)
        self.dirty = False
        self.state = EditorState.IDLE

    def handle(self, event: InputEvent) -> EditorState:
        """Apply at most one transition for *event* and return the new state."""
        if self.state is not EditorState.BROWSING:
            return self.state
        if event is InputEvent.UP:
            self.move(-1)
        elif event is InputEvent.DOWN:
            self.move(1)
        elif event is InputEvent.ACTIVATE:
            if self.info_only:
                self.exit()
            else:
                self.activate()
        elif event is InputEvent.BACK:
            self.exit()
        return self.state


def open_editor(
    key: str,
    ctx: SettingsContext,
    store: SettingsStore,
) -> EditorSession:
    """Load *key*'s overrides and start a fresh editing session."""
    session = EditorSession(key, ctx, store.load(key), store)
    log.debug(
        "Opened game settings for %s: %d field(s) visible",
        key, len(session.fields),
    )
    return session
