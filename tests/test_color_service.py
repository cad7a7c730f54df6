import pytest

np = pytest.importorskip("numpy")

from bgwand.models.color import Color
from bgwand.models.errors import InvalidFormatError, InvalidOptionsError
from bgwand.services.color_service import ColorService


def test_hex_to_color_with_and_without_hash():
    assert ColorService.hex_to_color("#FF5733") == Color(255, 87, 51)
    assert ColorService.hex_to_color("FF5733") == Color(255, 87, 51)
    assert ColorService.hex_to_color("#ff5733") == Color(255, 87, 51)


@pytest.mark.parametrize("text", ["zzzzzz", "#FFF", "", "#", "#FF57331", "##FF5733", "FF5733\n", " FF5733"])
def test_hex_to_color_rejects_bad_shapes(text):
    with pytest.raises(InvalidFormatError):
        ColorService.hex_to_color(text)


def test_hex_to_color_rejects_non_strings():
    with pytest.raises(InvalidFormatError):
        ColorService.hex_to_color(None)
    with pytest.raises(InvalidFormatError):
        ColorService.hex_to_color(0xFF5733)


def test_color_component_range_is_enforced():
    with pytest.raises(InvalidFormatError):
        Color(256, 0, 0)
    with pytest.raises(InvalidFormatError):
        Color(0, -1, 0)
    assert Color(1, 2, 255).to_hex() == "#0102FF"


def test_distance_is_symmetric_and_zero_on_identity():
    rng = np.random.default_rng(7)
    for _ in range(50):
        a = Color(*(int(v) for v in rng.integers(0, 256, 3)))
        b = Color(*(int(v) for v in rng.integers(0, 256, 3)))
        assert ColorService.distance(a, b) == ColorService.distance(b, a)
        assert ColorService.distance(a, a) == 0


def test_distance_weights_green_highest():
    black = Color(0, 0, 0)
    red = ColorService.distance(black, Color(100, 0, 0))
    green = ColorService.distance(black, Color(0, 100, 0))
    blue = ColorService.distance(black, Color(0, 0, 100))
    assert green > red > blue
    assert ColorService.distance(black, Color(255, 255, 255)) == pytest.approx(255.0)


def test_is_match_uses_two_and_a_half_scale():
    a, b = Color(0, 0, 0), Color(10, 0, 0)  # distance sqrt(30) ~ 5.48
    assert not ColorService.is_match(a, b, 2)   # 5.0
    assert ColorService.is_match(a, b, 3)       # 7.5
    assert ColorService.is_match(a, a, 0)


def test_is_match_is_monotonic_in_tolerance():
    a, b = Color(12, 200, 40), Color(90, 120, 250)
    matched = False
    for tolerance in range(0, 120):
        result = ColorService.is_match(a, b, tolerance)
        if matched:
            assert result
        matched = matched or result
    assert matched


def test_is_match_rejects_negative_tolerance():
    with pytest.raises(InvalidOptionsError):
        ColorService.is_match(Color(0, 0, 0), Color(0, 0, 0), -1)


def test_distance_map_agrees_with_scalar_distance():
    rng = np.random.default_rng(3)
    pixels = rng.integers(0, 256, size=(6, 5, 4), dtype=np.uint8)
    target = Color(40, 180, 90)
    dist = ColorService.distance_map(pixels, target)
    for y in range(6):
        for x in range(5):
            r, g, b = (int(v) for v in pixels[y, x, :3])
            assert dist[y, x] == ColorService.distance(Color(r, g, b), target)


@pytest.mark.parametrize("tolerance", [103, 255, 256, 10**6, 10**400])
def test_tolerance_past_the_widest_distance_matches_everything(tolerance):
    black, white = Color(0, 0, 0), Color(255, 255, 255)
    assert ColorService.is_match(black, white, tolerance)

    pixels = np.zeros((2, 2, 4), dtype=np.uint8)
    pixels[0, 0, :3] = 255
    pixels[1, 0, :3] = (0, 255, 0)
    assert ColorService.match_map(pixels, black, tolerance).all()


def test_color_accepts_numpy_integers():
    color = Color(np.uint8(5), np.int64(200), 0)
    assert color == Color(5, 200, 0)
    assert type(color.r) is int
    assert color.to_hex() == "#05C800"
    with pytest.raises(InvalidFormatError):
        Color(np.int64(256), 0, 0)
    with pytest.raises(InvalidFormatError):
        Color(1.0, 0, 0)
