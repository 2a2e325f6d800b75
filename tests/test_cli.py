from anes.cli import main
from anes.image import Scr, load_bitmap
from anes.rom import CHR_PAGE_SIZE, PRG_PAGE_SIZE


def _write_rom(path, signature=b"NES\x1a", flags=0):
    header = signature + bytes([1, 1, flags]) + bytes(9)
    path.write_bytes(header + bytes(PRG_PAGE_SIZE) + bytes(CHR_PAGE_SIZE))
    return path


def test_info_lists_header(tmp_path, capsys):
    rom = _write_rom(tmp_path / "game.nes")
    assert main([str(rom), "--info"]) == 0
    out = capsys.readouterr().out
    assert "# of 16K ROM banks: 1" in out
    assert "Horizontal mirroring" in out
    assert "MMC #0: None" in out


def test_extension_is_added(tmp_path, capsys):
    _write_rom(tmp_path / "game.nes")
    assert main([str(tmp_path / "game")]) == 0
    assert "16K ROM read" in capsys.readouterr().out


def test_missing_file_fails(tmp_path, capsys):
    assert main([str(tmp_path / "absent.nes")]) == 1
    assert "Unable to open file" in capsys.readouterr().err


def test_bad_header_fails(tmp_path, capsys):
    rom = _write_rom(tmp_path / "bad.nes", signature=b"XYZ\x1a")
    assert main([str(rom)]) == 1
    assert "Bad ROM header" in capsys.readouterr().err


def test_render_writes_frame(tmp_path):
    rom = _write_rom(tmp_path / "game.nes", flags=1)
    out = tmp_path / "frame.scr"
    assert main([str(rom), "--render", str(out)]) == 0
    bitmap = load_bitmap(out)
    assert isinstance(bitmap, Scr)
    assert (bitmap.width, bitmap.height) == (256, 224)
    assert len(bitmap.data) == 256 * 224