import pytest

from anes.font import Font, load_font
from anes.image import ImageError, Scr, Surface


def _glyph(width, color):
    return Scr(width, 2, bytearray([color] * width * 2)).compress(0)


def _font():
    font = Font()
    font.add_symbol(_glyph(3, 5), "A")
    font.add_symbol(_glyph(4, 7), "B")
    return font


def test_widths_and_space_default():
    font = _font()
    assert font.width_of("A") == 3
    assert font.width_of("AB") == 7
    assert font.width_of("Z") == 6
    assert font.glyph("Z") is None


def test_draw_char_returns_advance():
    font = _font()
    surface = Surface(10, 2)
    assert font.draw_char(surface, "B", 0, 0) == 4
    assert font.draw_char(surface, "?", 0, 0) == 6
    assert surface.get(3, 1) == 7


def test_draw_places_glyphs_side_by_side():
    font = _font()
    surface = Surface(20, 2)
    font.draw(surface, "A B", 0, 0)
    row = bytes(surface.pixels[:20])
    assert row[:3] == bytes([5, 5, 5])
    assert row[3:9] == bytes(6)
    assert row[9:13] == bytes([7, 7, 7, 7])


def test_draw_centered():
    font = _font()
    surface = Surface(20, 2)
    font.draw_centered(surface, "AB", 10, 0)
    assert surface.get(10 - 7 // 2, 0) == 5
    assert surface.get(10 - 7 // 2 - 1, 0) == 0


def test_add_symbol_copies_image():
    image = _glyph(2, 5)
    font = Font()
    font.add_symbol(image, "x")
    image.convert_color(5, 1)
    surface = Surface(2, 2)
    font.draw(surface, "x", 0, 0)
    assert surface.get(0, 0) == 5


def test_add_symbol_out_of_range():
    with pytest.raises(ValueError):
        Font().add_symbol(_glyph(1, 1), 200)


def test_duplicate_and_convert_color_independent():
    font = _font()
    copy = font.duplicate()
    copy.convert_color(5, 9)
    a, b = Surface(3, 2), Surface(3, 2)
    font.draw(a, "A", 0, 0)
    copy.draw(b, "A", 0, 0)
    assert a.get(0, 0) == 5
    assert b.get(0, 0) == 9


def test_bytes_round_trip():
    font = _font()
    again = Font.from_bytes(font.to_bytes())
    assert again.glyph("A") == font.glyph("A")
    assert again.glyph("B") == font.glyph("B")
    assert again.glyph("C") is None
    assert again.to_bytes() == font.to_bytes()


def test_truncated_font_rejected():
    with pytest.raises(ImageError):
        Font.from_bytes(b"\x00\x01")


def test_save_and_load(tmp_path):
    font = _font()
    path = tmp_path / "small.fnt"
    font.save(path)
    loaded = load_font(path)
    assert loaded.width_of("AB?") == font.width_of("AB?")
    assert loaded.glyph("B") == font.glyph("B")