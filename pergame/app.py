# Copyright (C) 2025-2026 pergame Contributors
# SPDX-License-Identifier: AGPL-3.0-or-later
# See LICENSE for the full text.

import logging
from dataclasses import replace
from pathlib import Path

from PySide6.QtWidgets import QApplication

from pergame.core.config import Config
from pergame.core.input_poller import InputPoller
from pergame.gamesettings import (
    SettingsContext, SettingsStore, open_editor, read_title_info, title_key,
)
from pergame.ui.game_settings_dialog import GameSettingsDialog

log = logging.getLogger(__name__)


class PerGameApp:
    """Top-level application controller: edits one title's settings."""

    def __init__(
        self,
        argv: list[str],
        title_path: str | Path,
        storage_root: str | Path | None = None,
    ):
        cfg = Config.load()

        self._qt = QApplication(argv)
        self._qt.setApplicationName("pergame")
        self._qt.setOrganizationName("pergame")

        runtime = cfg.runtime_context()
        if storage_root:
            runtime = replace(runtime, storage_root=Path(storage_root))
        info = read_title_info(title_path)
        ctx = SettingsContext.for_title(info.title_class, runtime)
        store = SettingsStore(runtime.storage_root)
        key = title_key(info.path)

        self._session = open_editor(key, ctx, store)
        poller = InputPoller(cfg.gamepad_index) if cfg.gamepad_nav else None
        self._dialog = GameSettingsDialog(self._session, info, poller)
        log.info("Editing %s (%s) in %s", key, info.title_class.value, store.storage_root)

    def run(self) -> int:
        """Show the editor and enter the Qt event loop until it closes."""
        self._dialog.show()
        self._dialog.finished.connect(self._qt.quit)
        return self._qt.exec()
