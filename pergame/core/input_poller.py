# Copyright (C) 2025-2026 pergame Contributors
# SPDX-License-Identifier: AGPL-3.0-or-later
# See LICENSE for the full text.

"""
Gamepad polling for the settings editor.

Uses pygame's joystick subsystem for buttons / axes / hats and turns the
raw event stream into the discrete, debounced :class:`InputEvent` values
the editor consumes.  Call :meth:`InputPoller.poll` once per frame.
"""

from __future__ import annotations

import logging
from collections import deque

from pergame.gamesettings.editor import InputEvent

log = logging.getLogger(__name__)

# Stick deflection that counts as a press
_AXIS_THRESHOLD = 0.5
# Below this the stick is considered back at rest
_AXIS_RELEASE = 0.3

BUTTON_ACTIVATE = 0
BUTTON_BACK = 1
_VERTICAL_AXIS = 1


def event_for_button(button: int) -> InputEvent | None:
    if button == BUTTON_ACTIVATE:
        return InputEvent.ACTIVATE
    if button == BUTTON_BACK:
        return InputEvent.BACK
    return None


def event_for_hat(value: tuple[int, int]) -> InputEvent | None:
    _, y = value
    if y > 0:
        return InputEvent.UP
    if y < 0:
        return InputEvent.DOWN
    return None


class AxisDebouncer:
    """Edge-trigger a stick axis: one event per deflection."""

    def __init__(self) -> None:
        self._held: dict[int, bool] = {}

    def feed(self, axis: int, value: float) -> InputEvent | None:
        if axis != _VERTICAL_AXIS:
            return None
        held = self._held.get(axis, False)
        if abs(value) < _AXIS_RELEASE:
            self._held[axis] = False
            return None
        if held or abs(value) < _AXIS_THRESHOLD:
            return None
        self._held[axis] = True
        # pygame reports stick-up as negative Y
        return InputEvent.UP if value < 0 else InputEvent.DOWN


class InputPoller:
    """Produces at most one :class:`InputEvent` per :meth:`poll` call.

    The pygame subsystems are initialised lazily on the first call to
    :meth:`ensure_ready`.
    """

    def __init__(self, device_index: int | None = None) -> None:
        self._ready = False
        self._device_index = device_index
        self._joysticks: dict[int, object] = {}
        self._axes = AxisDebouncer()
        self._pending: deque[InputEvent] = deque()

    # -- Lifecycle ---------------------------------------------------------

    def ensure_ready(self) -> bool:
        """Initialise pygame joystick support.  Returns ``True`` on success."""
        if self._ready:
            return True
        try:
            import os
            import pygame

            prev = os.environ.get("SDL_VIDEODRIVER")
            os.environ["SDL_VIDEODRIVER"] = "dummy"
            try:
                pygame.display.init()
            finally:
                if prev is not None:
                    os.environ["SDL_VIDEODRIVER"] = prev
                else:
                    os.environ.pop("SDL_VIDEODRIVER", None)

            pygame.joystick.init()
            for i in range(pygame.joystick.get_count()):
                joy = pygame.joystick.Joystick(i)
                joy.init()
                self._joysticks[i] = joy
            self._ready = True
            log.debug("Gamepad polling ready (%d device(s))", len(self._joysticks))
            return True
        except Exception:
            log.debug("Gamepad polling unavailable", exc_info=True)
            return False

    def shutdown(self) -> None:
        """Release all resources."""
        if not self._ready:
            return
        try:
            import pygame
            self._joysticks.clear()
            self._pending.clear()
            pygame.joystick.quit()
            pygame.display.quit()
        except Exception:
            log.debug("Error while shutting down pygame", exc_info=True)
        self._ready = False

    # -- Polling -----------------------------------------------------------

    def poll(self) -> InputEvent | None:
        """Drain pending pygame events and return the next editor event.

        Events beyond the first are queued and handed out on later calls, so
        two presses inside one frame are both delivered.
        """
        if not self._ready:
            return None

        import pygame

        for event in pygame.event.get():
            if self._device_index is not None:
                ev_joy = getattr(event, "joy", None)
                if ev_joy is not None and ev_joy != self._device_index:
                    continue

            translated: InputEvent | None = None
            if event.type == pygame.JOYBUTTONDOWN:
                translated = event_for_button(event.button)
            elif event.type == pygame.JOYHATMOTION:
                translated = event_for_hat(event.value)
            elif event.type == pygame.JOYAXISMOTION:
                # Always feed so the debouncer sees releases.
                translated = self._axes.feed(event.axis, event.value)

            if translated is not None:
                self._pending.append(translated)
        return self._pending.popleft() if self._pending else None
