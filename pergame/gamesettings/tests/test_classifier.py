"""Tests for title classification and header inspection."""

import struct
from pathlib import Path

import pytest

from pergame.gamesettings.classifier import (
    classify,
    find_launcharg_app,
    read_argv_file,
    read_header,
    read_sdk_version,
    read_title_info,
    resolve_title_path,
    sdk_version_label,
)
from pergame.gamesettings.models import TitleClass

_SIGNATURE = struct.pack("<II", 0xDEC00621, 0x2106C0DE)
_ARM9_OFFSET = 0x200


def _rom(
    game_code: bytes = b"ABCE",
    *,
    unit_code: int = 0x00,
    arm7_entry: int = 0x02380000,
    arm7_ram: int = 0x02380000,
    sdk_version: int | None = None,
) -> bytes:
    arm9 = b"\x00" * 32
    if sdk_version is not None:
        arm9 += struct.pack("<I", sdk_version) + _SIGNATURE
    arm9 += b"\x00" * 32

    header = bytearray(_ARM9_OFFSET)
    header[0x00:0x0C] = b"TESTGAME\x00\x00\x00\x00"
    header[0x0C:0x10] = game_code
    header[0x12] = unit_code
    struct.pack_into("<4I", header, 0x20, _ARM9_OFFSET, 0x02000000, 0x02000000, len(arm9))
    struct.pack_into(
        "<4I", header, 0x30, _ARM9_OFFSET + len(arm9), arm7_entry, arm7_ram, 0x100,
    )
    return bytes(header) + arm9


def _write_rom(path: Path, **kwargs) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(_rom(**kwargs))
    return path


class TestHeader:
    def test_fields(self, tmp_path: Path) -> None:
        rom = _write_rom(tmp_path / "game.nds", game_code=b"AMCE", unit_code=0x02)
        header = read_header(rom)
        assert header is not None
        assert header.game_code == "AMCE"
        assert header.unit_code == 0x02
        assert header.arm9_rom_offset == _ARM9_OFFSET

    def test_truncated_file(self, tmp_path: Path) -> None:
        rom = tmp_path / "short.nds"
        rom.write_bytes(b"\x00" * 16)
        assert read_header(rom) is None

    def test_missing_file(self, tmp_path: Path) -> None:
        assert read_header(tmp_path / "missing.nds") is None


class TestClassify:
    def test_retail_cartridge(self, tmp_path: Path) -> None:
        assert classify(_write_rom(tmp_path / "game.nds")) is TitleClass.OTHER

    def test_homebrew_game_code(self, tmp_path: Path) -> None:
        rom = _write_rom(tmp_path / "hb.nds", game_code=b"####")
        assert classify(rom) is TitleClass.HOMEBREW

    def test_homebrew_arm7_in_iwram(self, tmp_path: Path) -> None:
        rom = _write_rom(
            tmp_path / "hb.nds", game_code=b"HBRW",
            arm7_entry=0x037F8000, arm7_ram=0x037F8000,
        )
        assert classify(rom) is TitleClass.HOMEBREW

    def test_digital_title(self, tmp_path: Path) -> None:
        rom = _write_rom(tmp_path / "dsiware.nds", game_code=b"KABE", unit_code=0x03)
        assert classify(rom) is TitleClass.DIGITAL_TITLE

    def test_dsi_enhanced_cartridge_is_not_digital(self, tmp_path: Path) -> None:
        rom = _write_rom(tmp_path / "game.nds", game_code=b"IRBO", unit_code=0x02)
        assert classify(rom) is TitleClass.OTHER

    def test_digital_code_needs_dsi_unit(self, tmp_path: Path) -> None:
        rom = _write_rom(tmp_path / "game.nds", game_code=b"KABE", unit_code=0x00)
        assert classify(rom) is TitleClass.OTHER

    def test_unreadable_title(self, tmp_path: Path) -> None:
        path = tmp_path / "broken.nds"
        path.write_bytes(b"")
        assert classify(path) is TitleClass.OTHER


class TestIndirection:
    def test_read_argv_file(self, tmp_path: Path) -> None:
        argv = tmp_path / "game.argv"
        argv.write_text("# comment line\nroms/game.nds --flag # tail\n  extra\n")
        assert read_argv_file(argv) == ["roms/game.nds", "--flag", "extra"]

    def test_argv_resolves_target(self, tmp_path: Path) -> None:
        rom = _write_rom(tmp_path / "roms" / "hb.nds", game_code=b"####")
        argv = tmp_path / "hb.argv"
        argv.write_text(f"{rom} arg1\n")
        assert resolve_title_path(argv) == rom
        info = read_title_info(argv)
        assert info.title_class is TitleClass.HOMEBREW
        assert info.path == argv

    def test_empty_argv_falls_back(self, tmp_path: Path) -> None:
        argv = tmp_path / "empty.argv"
        argv.write_text("# nothing\n")
        assert resolve_title_path(argv) == argv

    def test_launcharg_resolves_app(self, tmp_path: Path) -> None:
        title_dir = tmp_path / "title" / "00030004" / "4b414245"
        app = _write_rom(title_dir / "content" / "00000001.app", game_code=b"KABE",
                         unit_code=0x03)
        launch = tmp_path / "KABE.launcharg"
        launch.write_text(f"{title_dir}/\n")
        assert find_launcharg_app(title_dir) == app
        assert resolve_title_path(launch) == app

        info = read_title_info(launch)
        assert info.title_class is TitleClass.LAUNCH_ARGUMENT
        assert info.game_code == "KABE"

    def test_launcharg_without_app_uses_raw_path(self, tmp_path: Path) -> None:
        launch = tmp_path / "missing.launcharg"
        launch.write_text(f"{tmp_path / 'nowhere'}\n")
        assert resolve_title_path(launch) == launch
        assert classify(launch) is TitleClass.LAUNCH_ARGUMENT

    def test_plain_rom_not_resolved(self, tmp_path: Path) -> None:
        rom = tmp_path / "game.nds"
        assert resolve_title_path(rom) == rom


class TestSdkVersion:
    def test_reads_version(self, tmp_path: Path) -> None:
        rom = _write_rom(tmp_path / "game.nds", sdk_version=0x05016F00)
        assert read_sdk_version(rom) == 0x05016F00

    def test_no_module_params(self, tmp_path: Path) -> None:
        assert read_sdk_version(_write_rom(tmp_path / "game.nds")) == 0

    def test_homebrew_has_no_version(self, tmp_path: Path) -> None:
        rom = _write_rom(tmp_path / "hb.nds", game_code=b"####", sdk_version=0x04007530)
        assert read_sdk_version(rom) == 0

    @pytest.mark.parametrize(
        "version, label",
        [
            (0x01007530, "SDK ver: 1"),
            (0x02017530, "SDK ver: 2"),
            (0x030027D0, "SDK ver: 3"),
            (0x04027530, "SDK ver: 4"),
            (0x05016F00, "SDK ver: 5 (TWLSDK)"),
            (0, "SDK ver: ?"),
            (0x07000000, "SDK ver: ?"),
        ],
    )
    def test_labels(self, version: int, label: str) -> None:
        assert sdk_version_label(version) == label


class TestTitleInfo:
    def test_retail_info(self, tmp_path: Path) -> None:
        rom = _write_rom(tmp_path / "game.nds", game_code=b"AMCE", sdk_version=0x02017530)
        info = read_title_info(rom)
        assert info.tid_text == "TID: AMCE"
        assert info.sdk_text == "SDK ver: 2"
        assert info.shows_sdk_version

    def test_homebrew_hides_sdk(self, tmp_path: Path) -> None:
        info = read_title_info(_write_rom(tmp_path / "hb.nds", game_code=b"####"))
        assert not info.shows_sdk_version
        assert info.sdk_version == 0

    def test_unknown_tid(self, tmp_path: Path) -> None:
        path = tmp_path / "broken.nds"
        path.write_bytes(b"")
        assert read_title_info(path).tid_text == "TID: ????"
