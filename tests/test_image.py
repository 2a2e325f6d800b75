import struct

import pytest

from anes.image import (
    Color,
    ColorMap,
    Img,
    ImageError,
    Palette,
    Scr,
    Surface,
    decode_iff,
    draw_box,
    find_chunk,
    load_bitmap,
    read_lbm,
    reverse_word,
    save_bitmap,
)


def _drawn(bitmap, width, height, background=9):
    surface = Surface(width, height)
    surface.fill(background)
    bitmap.draw(surface, 0, 0)
    return surface


def test_compress_worked_example():
    img = Scr(4, 1, bytearray([0, 5, 5, 0])).compress(0)
    assert img.lines == [bytearray([1, 2, 5, 5, 1])]


def test_compress_preserves_pixels_over_long_runs():
    row = [0] * 300 + [7] * 300 + [0, 3, 0]
    scr = Scr(len(row), 2, bytearray(row * 2))
    img = scr.compress(0)
    drawn = _drawn(img, len(row), 2)
    expected = bytearray(9 if p == 0 else p for p in row * 2)
    assert drawn.pixels == expected


def test_img_bytes_round_trip():
    scr = Scr(5, 3, bytearray([0, 1, 2, 0, 0, 3, 3, 3, 3, 3, 0, 0, 0, 0, 4]))
    img = scr.compress(0)
    again = Img.from_bytes(img.to_bytes())
    assert again == img
    assert struct.unpack_from("<i", img.to_bytes(), 4)[0] == len(img.to_bytes())


def test_img_from_bytes_rejects_scr():
    with pytest.raises(ImageError):
        Img.from_bytes(Scr(2, 2).to_bytes())


def test_scr_bytes_round_trip():
    scr = Scr(3, 2, bytearray(range(6)))
    assert Scr.from_bytes(scr.to_bytes()) == scr


def test_scr_draw_clips():
    scr = Scr(2, 2, bytearray([1, 2, 3, 4]))
    surface = Surface(3, 3)
    scr.draw(surface, -1, -1)
    assert surface.get(0, 0) == 4
    assert sum(surface.pixels) == 4


def test_convert_color_only_touches_opaque():
    img = Scr(3, 1, bytearray([0, 5, 6])).compress(0)
    img.convert_color(5, 8)
    assert _drawn(img, 3, 1).pixels == bytearray([9, 8, 6])


def test_apply_colormap_and_duplicate_independent():
    img = Scr(2, 1, bytearray([1, 2])).compress(0)
    copy = img.duplicate()
    cmap = ColorMap()
    cmap.table[1] = 10
    img.apply_colormap(cmap)
    assert _drawn(img, 2, 1).pixels == bytearray([10, 2])
    assert _drawn(copy, 2, 1).pixels == bytearray([1, 2])


def test_draw_map_remaps_under_opaque():
    img = Scr(2, 1, bytearray([0, 1])).compress(0)
    surface = Surface(2, 1, bytearray([4, 4]))
    cmap = ColorMap()
    cmap.table[4] = 2
    img.draw_map(cmap, surface, 0, 0)
    assert surface.pixels == bytearray([4, 2])


def test_color_fade_levels():
    c = Color(200, 100, 50)
    assert c.fade(32) == c
    assert c.fade(0) == Color(0, 0, 0)


def test_palette_closest_and_shade_map():
    palette = Palette([Color(i, i, i) for i in range(256)])
    assert palette.find_closest_match(Color(40, 40, 40), 256) == 40
    cmap = ColorMap()
    cmap.create_shade_map(palette, 32, 32, 32)
    assert list(cmap.table) == list(range(256))
    cmap.create_shade_map(palette, 0, 0, 0)
    assert set(cmap.table) == {0}
    cmap.clear()
    assert list(cmap.table) == list(range(256))


def test_palette_fade_and_duplicate():
    palette = Palette([Color(64, 32, 16), Color(8, 8, 8)])
    assert len(palette.duplicate(1)) == 1
    assert palette.fade(2, 16)[0] == Color(32, 16, 8)


def test_reverse_word_involution():
    assert reverse_word(0x1234) == 0x3412
    assert reverse_word(reverse_word(0xABCD)) == 0xABCD


def test_find_chunk():
    data = b"FORM\x00\x00\x00\x00ILBMBMHD"
    assert find_chunk(data, b"ILBM") == 8
    assert find_chunk(data, b"BODY") is None


def test_decode_iff_uncompressed_and_compressed_agree():
    raw = b"\x80\x00" + b"\x00\x00" * 7
    packed = b"\x01\x80\x00" + b"\x01\x00\x00" * 7
    plain = decode_iff(raw, 16, 1, False)
    assert plain[0] == 1
    assert sum(plain[1:]) == 0
    assert decode_iff(packed, 16, 1, True) == plain
    repeat = b"\xff\x00" * 8
    assert decode_iff(repeat, 16, 1, True) == bytearray(16)


def test_decode_iff_truncated():
    with pytest.raises(ImageError):
        decode_iff(b"\x00", 16, 1, False)


def _lbm(width, height, body, compression=0):
    bmhd = struct.pack(">HHhhBBBB", width, height, 0, 0, 8, 0, compression, 0)
    bmhd += b"\x00" * 8
    chunks = b"ILBM" + b"BMHD" + struct.pack(">I", len(bmhd)) + bmhd
    chunks += b"BODY" + struct.pack(">I", len(body)) + body
    return b"FORM" + struct.pack(">I", len(chunks)) + chunks


def test_read_lbm(tmp_path):
    path = tmp_path / "pic.lbm"
    body = b"\x80\x00" + b"\x00\x00" * 6 + b"\x80\x00"
    path.write_bytes(_lbm(16, 1, body))
    scr = read_lbm(path)
    assert (scr.width, scr.height) == (16, 1)
    assert scr.data[0] == 0x81


def test_read_lbm_rejects_non_iff(tmp_path):
    path = tmp_path / "bad.lbm"
    path.write_bytes(b"JUNKDATA")
    with pytest.raises(ImageError):
        read_lbm(path)


def test_save_and_load_bitmap(tmp_path):
    img = Scr(3, 1, bytearray([0, 1, 2])).compress(0)
    written = save_bitmap(img, tmp_path / "sprite")
    assert written.name == "sprite.R2"
    assert load_bitmap(written) == img
    scr = Scr(2, 1, bytearray([5, 6]))
    written = save_bitmap(scr, tmp_path / "back")
    assert written.name == "back.SCR"
    assert load_bitmap(written) == scr


def test_draw_box_outline():
    surface = Surface(5, 5)
    draw_box(surface, 3, 0, 0, 5, 5)
    assert surface.get(0, 0) == 3
    assert surface.get(4, 4) == 3
    assert surface.get(4, 2) == 3
    assert surface.get(2, 2) == 0


def test_surface_get_out_of_bounds():
    with pytest.raises(IndexError):
        Surface(2, 2).get(2, 0)