"""Tests for the settings editor state machine."""

from pathlib import Path

from pergame.gamesettings.editor import EditorState, InputEvent, open_editor
from pergame.gamesettings.ini_io import read_section
from pergame.gamesettings.models import (
    GlobalDefaults,
    HardwareCapabilities,
    SettingField,
    SettingsContext,
    TitleClass,
)
from pergame.gamesettings.repository import SettingsStore

F = SettingField
KEY = "Game.nds"


def _ctx(
    title_class: TitleClass = TitleClass.OTHER,
    *,
    ext: bool = True,
    dsi: bool = True,
    helper: bool = True,
    secondary: bool = False,
) -> SettingsContext:
    return SettingsContext(
        title_class=title_class,
        capabilities=HardwareCapabilities(
            has_extended_config=ext,
            is_dsi_capable=dsi,
            bootstrap_helper_active=helper,
        ),
        defaults=GlobalDefaults(),
        secondary_device=secondary,
    )


def _move_to(session, setting: SettingField) -> None:
    while session.current_field is not setting:
        session.handle(InputEvent.DOWN)


class TestOpen:
    def test_fresh_title(self, tmp_path: Path) -> None:
        session = open_editor(KEY, _ctx(), SettingsStore(tmp_path))
        assert session.state is EditorState.BROWSING
        assert session.cursor == 0
        assert not session.dirty
        rows = session.rows()
        assert [r.value_text for r in rows] == ["Default"] * 5
        assert [r.selected for r in rows] == [True, False, False, False, False]

    def test_fresh_title_with_dsi_global_default(self, tmp_path: Path) -> None:
        ctx = SettingsContext(
            title_class=TitleClass.OTHER,
            capabilities=HardwareCapabilities(
                has_extended_config=True,
                is_dsi_capable=True,
                bootstrap_helper_active=True,
            ),
            defaults=GlobalDefaults(run_mode=1),
        )
        session = open_editor(KEY, ctx, SettingsStore(tmp_path))
        rows = {r.setting: (r.value_text, r.read_only) for r in session.rows()}
        assert rows[F.CPU_BOOST] == ("Default", False)
        assert rows[F.VRAM_BOOST] == ("Default", False)
        _move_to(session, F.CPU_BOOST)
        assert session.activate()

    def test_loads_stored_values(self, tmp_path: Path) -> None:
        store = SettingsStore(tmp_path)
        path = store.path_for(KEY)
        path.parent.mkdir(parents=True)
        path.write_text("[GAMESETTINGS]\nDSI_MODE = 0\nBOOTSTRAP_FILE = 1\n")
        session = open_editor(KEY, _ctx(), store)
        labels = {r.setting: r.value_text for r in session.rows()}
        assert labels[F.RUN_MODE] == "DS mode"
        assert labels[F.BOOTSTRAP_VARIANT] == "Nightly"


class TestNavigation:
    def test_cursor_wraps(self, tmp_path: Path) -> None:
        session = open_editor(KEY, _ctx(), SettingsStore(tmp_path))
        session.handle(InputEvent.UP)
        assert session.cursor == 4
        session.handle(InputEvent.DOWN)
        assert session.cursor == 0

    def test_cursor_stays_in_range(self, tmp_path: Path) -> None:
        session = open_editor(KEY, _ctx(TitleClass.HOMEBREW, helper=False),
                              SettingsStore(tmp_path))
        for event in [InputEvent.DOWN] * 9 + [InputEvent.UP] * 13:
            session.handle(event)
            assert 0 <= session.cursor < len(session.fields)

    def test_homebrew_without_helper_reaches_every_field(self, tmp_path: Path) -> None:
        session = open_editor(KEY, _ctx(TitleClass.HOMEBREW, helper=False),
                              SettingsStore(tmp_path))
        seen = set()
        for _ in range(len(session.fields)):
            seen.add(session.current_field)
            session.handle(InputEvent.DOWN)
        assert seen == {F.DIRECT_BOOT, F.RUN_MODE, F.CPU_BOOST, F.VRAM_BOOST}


class TestActivate:
    def test_run_mode_cycle(self, tmp_path: Path) -> None:
        session = open_editor(KEY, _ctx(), SettingsStore(tmp_path))
        _move_to(session, F.RUN_MODE)
        seen = []
        for _ in range(4):
            session.handle(InputEvent.ACTIVATE)
            seen.append(session.override.get(F.RUN_MODE))
        assert seen == [0, 1, 2, None]
        assert session.dirty

    def test_language_full_lap(self, tmp_path: Path) -> None:
        session = open_editor(KEY, _ctx(), SettingsStore(tmp_path))
        assert session.current_field is F.LANGUAGE
        for _ in range(8):
            session.handle(InputEvent.ACTIVATE)
        assert session.override.is_inherited(F.LANGUAGE)

    def test_direct_boot_toggles_back(self, tmp_path: Path) -> None:
        session = open_editor(KEY, _ctx(TitleClass.HOMEBREW), SettingsStore(tmp_path))
        assert session.current_field is F.DIRECT_BOOT
        session.handle(InputEvent.ACTIVATE)
        assert session.effective_value(F.DIRECT_BOOT) == 1
        session.handle(InputEvent.ACTIVATE)
        assert session.effective_value(F.DIRECT_BOOT) == 0

    def test_dsi_mode_locks_boosts(self, tmp_path: Path) -> None:
        session = open_editor(KEY, _ctx(), SettingsStore(tmp_path))
        _move_to(session, F.RUN_MODE)
        session.handle(InputEvent.ACTIVATE)   # DS mode
        session.handle(InputEvent.ACTIVATE)   # DSi mode
        assert session.is_read_only(F.CPU_BOOST)
        assert session.is_read_only(F.VRAM_BOOST)

        _move_to(session, F.CPU_BOOST)
        assert not session.activate()
        assert session.override.is_inherited(F.CPU_BOOST)
        assert session.effective_value(F.CPU_BOOST) == 1
        row = next(r for r in session.rows() if r.setting is F.CPU_BOOST)
        assert row.read_only
        assert row.value_text == "133mhz (TWL)"

    def test_leaving_dsi_mode_unlocks_boosts(self, tmp_path: Path) -> None:
        session = open_editor(KEY, _ctx(), SettingsStore(tmp_path))
        _move_to(session, F.RUN_MODE)
        for _ in range(4):   # DS, DSi, DSi forced, Default
            session.handle(InputEvent.ACTIVATE)
        assert not session.is_read_only(F.CPU_BOOST)
        _move_to(session, F.CPU_BOOST)
        assert session.activate()
        assert session.override.get(F.CPU_BOOST) == 0


class TestExit:
    def test_clean_exit_writes_nothing(self, tmp_path: Path) -> None:
        store = SettingsStore(tmp_path)
        session = open_editor(KEY, _ctx(), store)
        assert session.handle(InputEvent.BACK) is EditorState.IDLE
        assert not store.path_for(KEY).exists()

    def test_dirty_exit_saves(self, tmp_path: Path) -> None:
        store = SettingsStore(tmp_path)
        session = open_editor(KEY, _ctx(), store)
        _move_to(session, F.RUN_MODE)
        session.handle(InputEvent.ACTIVATE)
        assert session.handle(InputEvent.BACK) is EditorState.IDLE
        assert store.load(KEY).get(F.RUN_MODE) == 0

    def test_homebrew_save_skips_language_and_bootstrap(self, tmp_path: Path) -> None:
        store = SettingsStore(tmp_path)
        session = open_editor(KEY, _ctx(TitleClass.HOMEBREW), store)
        _move_to(session, F.BOOTSTRAP_VARIANT)
        session.handle(InputEvent.ACTIVATE)
        session.handle(InputEvent.BACK)
        values = read_section(store.path_for(KEY), "GAMESETTINGS")
        assert set(values) == {"DIRECT_BOOT", "DSI_MODE", "BOOST_CPU", "BOOST_VRAM"}

    def test_non_dsi_retail_save_touches_nothing(self, tmp_path: Path) -> None:
        store = SettingsStore(tmp_path)
        session = open_editor(KEY, _ctx(dsi=False, helper=False), store)
        assert session.fields == [F.CPU_BOOST, F.VRAM_BOOST]
        session.handle(InputEvent.ACTIVATE)
        assert session.handle(InputEvent.BACK) is EditorState.IDLE
        assert not store.path_for(KEY).exists()

    def test_failed_save_keeps_session_open(self, tmp_path: Path) -> None:
        blocker = tmp_path / "blocker"
        blocker.write_text("")
        session = open_editor(KEY, _ctx(), SettingsStore(blocker))
        session.handle(InputEvent.ACTIVATE)

        assert session.handle(InputEvent.BACK) is EditorState.BROWSING
        assert session.save_failed
        assert session.dirty

        # Retry against a writable store.
        session.store = SettingsStore(tmp_path / "sd")
        assert session.handle(InputEvent.BACK) is EditorState.IDLE
        assert not session.save_failed
        assert session.store.load(KEY).get(F.LANGUAGE) == -1

    def test_abandon_discards(self, tmp_path: Path) -> None:
        store = SettingsStore(tmp_path)
        session = open_editor(KEY, _ctx(), store)
        session.handle(InputEvent.ACTIVATE)
        session.abandon()
        assert session.state is EditorState.IDLE
        assert not store.path_for(KEY).exists()

    def test_events_ignored_once_closed(self, tmp_path: Path) -> None:
        session = open_editor(KEY, _ctx(), SettingsStore(tmp_path))
        session.handle(InputEvent.BACK)
        assert session.handle(InputEvent.ACTIVATE) is EditorState.IDLE
        assert session.override.values == {}


class TestInfoOnly:
    def test_digital_title(self, tmp_path: Path) -> None:
        store = SettingsStore(tmp_path)
        session = open_editor(KEY, _ctx(TitleClass.DIGITAL_TITLE), store)
        assert session.info_only
        assert session.rows() == []
        assert session.current_field is None
        assert session.handle(InputEvent.DOWN) is EditorState.BROWSING
        assert session.handle(InputEvent.ACTIVATE) is EditorState.IDLE
        assert not store.path_for(KEY).exists()

    def test_back_also_closes(self, tmp_path: Path) -> None:
        session = open_editor(KEY, _ctx(TitleClass.LAUNCH_ARGUMENT),
                              SettingsStore(tmp_path))
        assert session.handle(InputEvent.BACK) is EditorState.IDLE


class TestUpdateContext:
    def test_cursor_follows_field(self, tmp_path: Path) -> None:
        session = open_editor(KEY, _ctx(), SettingsStore(tmp_path))
        _move_to(session, F.CPU_BOOST)
        session.update_context(_ctx(helper=False))
        assert session.fields == [F.RUN_MODE, F.CPU_BOOST, F.VRAM_BOOST]
        assert session.current_field is F.CPU_BOOST

    def test_cursor_resets_when_field_disappears(self, tmp_path: Path) -> None:
        session = open_editor(KEY, _ctx(), SettingsStore(tmp_path))
        _move_to(session, F.BOOTSTRAP_VARIANT)
        session.update_context(_ctx(helper=False))
        assert session.cursor == 0

    def test_losing_dsi_capability_releases_lock(self, tmp_path: Path) -> None:
        session = open_editor(KEY, _ctx(), SettingsStore(tmp_path))
        _move_to(session, F.RUN_MODE)
        session.handle(InputEvent.ACTIVATE)
        session.handle(InputEvent.ACTIVATE)
        assert session.is_read_only(F.CPU_BOOST)
        session.update_context(_ctx(dsi=False))
        assert not session.is_read_only(F.CPU_BOOST)

    def test_becoming_info_only(self, tmp_path: Path) -> None:
        session = open_editor(KEY, _ctx(), SettingsStore(tmp_path))
        session.update_context(_ctx(TitleClass.DIGITAL_TITLE))
        assert session.info_only
        assert session.current_field is None
