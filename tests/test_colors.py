import pytest

from autotheme.colors import (
    LIGHT_THRESHOLD,
    RGBColor,
    classify_background,
    is_light,
    luminance,
    parse_color_reply,
)


def test_parse_full_precision_red():
    assert parse_color_reply("rgb:ffff/0000/0000") == RGBColor(0xFFFF, 0, 0)


def test_parse_scales_short_fields_to_full_range():
    assert parse_color_reply("rgb:f/ff/fff") == RGBColor(0xFFFF, 0xFFFF, 0xFFFF)
    assert parse_color_reply("rgb:8/80/800").rgb8 == (136, 128, 128)


def test_parse_accepts_mixed_case():
    assert parse_color_reply("rgb:1E1e/1e1E/1E1E").hex == "#1e1e1e"


def test_black_is_a_real_color():
    color = parse_color_reply("rgb:0000/0000/0000")
    assert color is not None
    assert color == RGBColor(0, 0, 0)


@pytest.mark.parametrize(
    "reply",
    [
        "",
        "rgb:",
        "rgb:ffff/ffff",
        "rgb:fffff/0000/0000",
        "rgb:gggg/0000/0000",
        "rgba:ffff/ffff/ffff/ffff",
        " rgb:ffff/ffff/ffff",
        "rgb:ffff/ffff/ffff\n",
        "#ffffff",
        "\x1b[?2026;2$y",
    ],
)
def test_unparseable_replies(reply):
    assert parse_color_reply(reply) is None


def test_non_string_reply_is_unparseable():
    assert parse_color_reply(None) is None
    assert parse_color_reply(b"rgb:ffff/ffff/ffff") is None


def test_from_hex():
    assert RGBColor.from_hex("#1e1e1e") == RGBColor(0x1E1E, 0x1E1E, 0x1E1E)
    assert RGBColor.from_hex("fff") == RGBColor(0xFFFF, 0xFFFF, 0xFFFF)
    assert RGBColor.from_hex("#12345") is None
    assert RGBColor.from_hex("not a color") is None


def test_hex_matches_reply():
    assert parse_color_reply("rgb:4fff/5fff/80ff").hex == "#506080"
    assert str(RGBColor(0xFFFF, 0, 0)) == "#ff0000"


def test_luminance_extremes():
    black = luminance(RGBColor(0, 0, 0))
    white = luminance(RGBColor(0xFFFF, 0xFFFF, 0xFFFF))
    assert black == 0.0
    assert white == pytest.approx(1.0)
    assert black < white


def test_luminance_is_monotonic_in_grey():
    greys = [luminance(RGBColor(v, v, v)) for v in range(0, 0x10000, 0x1000)]
    assert greys == sorted(greys)


def test_green_weighs_most():
    red = luminance(RGBColor(0xFFFF, 0, 0))
    green = luminance(RGBColor(0, 0xFFFF, 0))
    blue = luminance(RGBColor(0, 0, 0xFFFF))
    assert green > red > blue


def test_classification():
    assert classify_background(RGBColor.from_hex("#1e1e1e")) == "dark"
    assert classify_background(RGBColor.from_hex("#fafafa")) == "light"
    assert classify_background(parse_color_reply("rgb:4fff/5fff/80ff")) == "dark"
    assert is_light(LIGHT_THRESHOLD)
    assert not is_light(0.1)
    assert is_light(0.9)
