import pytest

from pixelgate.color import Color, color_from_hex


def test_short_white():
    assert color_from_hex("fff") == Color(255, 255, 255)


def test_short_form_expands_digits():
    assert color_from_hex("a1c") == color_from_hex("aa11cc")
    assert color_from_hex("A1C") == color_from_hex("aa11cc")


@pytest.mark.parametrize("value", ["000000", "ff8000", "123abc", "c0ffee"])
def test_long_form_round_trip(value):
    c = color_from_hex(value)
    assert f"{c.r:02x}{c.g:02x}{c.b:02x}" == value


def test_black():
    assert color_from_hex("000") == Color()


@pytest.mark.parametrize("value", ["", "ff", "ffff", "fffff", "ggg", "#fff", "abc\n", "1234567"])
def test_invalid(value):
    with pytest.raises(ValueError, match="Invalid hex color"):
        color_from_hex(value)