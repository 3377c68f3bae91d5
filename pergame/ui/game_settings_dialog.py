# Copyright (C) 2025-2026 pergame Contributors
# SPDX-License-Identifier: AGPL-3.0-or-later
# See LICENSE for the full text.

"""
Game settings dialog.

A single generic renderer over :meth:`EditorSession.rows`: whichever fields
the session reports are drawn as ``label  value`` rows with a cursor marker,
so no layout code depends on the title's classification.  Keyboard events
and (optionally) gamepad polls are translated into one
:class:`InputEvent` per frame.
"""

from __future__ import annotations

import logging

from PySide6.QtCore import Qt, QTimer
from PySide6.QtWidgets import (
    QApplication, QDialog, QGridLayout, QLabel, QMessageBox, QStyle,
    QVBoxLayout, QWidget,
)

from pergame.core.input_poller import InputPoller
from pergame.gamesettings import (
    EditorSession, EditorState, InputEvent, TitleInfo,
)

log = logging.getLogger(__name__)

_FRAME_MS = 16

_SAVE_FAILED_RETRY = (
    "Could not save the settings for this title.\n"
    "Your changes are kept; press Back to try again."
)
_SAVE_FAILED_DISCARD = (
    "Could not save the settings for this title.\n"
    "Your changes have been discarded."
)

_KEY_EVENTS: dict[int, InputEvent] = {
    Qt.Key.Key_Up: InputEvent.UP,
    Qt.Key.Key_Down: InputEvent.DOWN,
    Qt.Key.Key_Return: InputEvent.ACTIVATE,
    Qt.Key.Key_Enter: InputEvent.ACTIVATE,
    Qt.Key.Key_Space: InputEvent.ACTIVATE,
    Qt.Key.Key_A: InputEvent.ACTIVATE,
    Qt.Key.Key_Escape: InputEvent.BACK,
    Qt.Key.Key_Backspace: InputEvent.BACK,
    Qt.Key.Key_B: InputEvent.BACK,
}


def _warn_silently(parent, title: str, text: str) -> None:
    """QMessageBox.warning without the Windows system beep."""
    box = QMessageBox(parent)
    box.setIcon(QMessageBox.Icon.NoIcon)   # suppresses Windows MessageBeep()
    box.setWindowTitle(title)
    box.setText(text)
    icon = QApplication.style().standardIcon(QStyle.StandardPixmap.SP_MessageBoxWarning)
    box.setIconPixmap(icon.pixmap(32, 32))
    box.setStandardButtons(QMessageBox.StandardButton.Ok)
    box.exec()


class GameSettingsDialog(QDialog):
    """Modal per-title settings editor."""

    MIN_W, MIN_H = 360, 240

    def __init__(
        self,
        session: EditorSession,
        info: TitleInfo,
        poller: InputPoller | None = None,
        parent=None,
    ):
        super().__init__(parent)
        self._session = session
        self._info = info
        self._poller = poller

        self.setWindowTitle(info.path.name)
        self.setMinimumSize(self.MIN_W, self.MIN_H)
        self._build_ui()
        self._refresh()

        self._timer: QTimer | None = None
        if poller is not None and poller.ensure_ready():
            self._timer = QTimer(self)
            self._timer.timeout.connect(self._on_frame)
            self._timer.start(_FRAME_MS)

    # ------------------------------------------------------------------
    # Build UI
    # ------------------------------------------------------------------

    def _build_ui(self):
        root = QVBoxLayout(self)
        root.setContentsMargins(16, 12, 16, 12)
        root.setSpacing(8)

        heading = "Info" if self._session.info_only else "Game settings"
        self._heading = QLabel(heading)
        self._heading.setObjectName("sectionLabel")
        self._heading.setAlignment(Qt.AlignmentFlag.AlignHCenter)
        root.addWidget(self._heading)

        meta = QWidget()
        meta_row = QGridLayout(meta)
        meta_row.setContentsMargins(0, 0, 0, 0)
        sdk = QLabel(self._info.sdk_text if self._info.shows_sdk_version else "")
        tid = QLabel(self._info.tid_text)
        tid.setAlignment(Qt.AlignmentFlag.AlignRight)
        meta_row.addWidget(sdk, 0, 0)
        meta_row.addWidget(tid, 0, 1)
        root.addWidget(meta)

        self._rows_widget = QWidget()
        self._rows = QGridLayout(self._rows_widget)
        self._rows.setContentsMargins(0, 0, 0, 0)
        self._rows.setHorizontalSpacing(12)
        root.addWidget(self._rows_widget)
        root.addStretch(1)

        hint = "A: OK" if self._session.info_only else "B: Back"
        self._hint = QLabel(hint)
        self._hint.setAlignment(Qt.AlignmentFlag.AlignHCenter)
        root.addWidget(self._hint)

    def _refresh(self):
        while self._rows.count():
            item = self._rows.takeAt(0)
            if item.widget():
                item.widget().deleteLater()

        for r, row in enumerate(self._session.rows()):
            marker = QLabel(">" if row.selected else "")
            label = QLabel(row.label + ":")
            value = QLabel(row.value_text)
            value.setAlignment(Qt.AlignmentFlag.AlignRight)
            value.setEnabled(not row.read_only)
            self._rows.addWidget(marker, r, 0)
            self._rows.addWidget(label, r, 1)
            self._rows.addWidget(value, r, 2)

    # ------------------------------------------------------------------
    # Input
    # ------------------------------------------------------------------

    def keyPressEvent(self, event):
        mapped = _KEY_EVENTS.get(event.key())
        if mapped is None:
            super().keyPressEvent(event)
            return
        self._dispatch(mapped)

    def _on_frame(self):
        event = self._poller.poll() if self._poller else None
        if event is not None:
            self._dispatch(event)

    def _dispatch(self, event: InputEvent):
        state = self._session.handle(event)
        if state is EditorState.IDLE:
            self._close()
            return
        if event is InputEvent.BACK and self._session.save_failed:
            _warn_silently(self, "Game settings", _SAVE_FAILED_RETRY)
        self._refresh()

    def reject(self):
        # Window close button / Esc handled by Qt: route through the session.
        if self._session.state is not EditorState.IDLE:
            if not self._session.exit():
                log.warning("Closing game settings without saving %s", self._session.key)
                _warn_silently(self, "Game settings", _SAVE_FAILED_DISCARD)
                self._session.abandon()
        self._close()

    def _close(self):
        if self._timer is not None:
            self._timer.stop()
        if self._poller is not None:
            self._poller.shutdown()
        super().accept()
