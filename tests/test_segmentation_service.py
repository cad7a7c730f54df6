from collections import deque

import pytest

np = pytest.importorskip("numpy")

from bgwand.models.color import Color
from bgwand.models.errors import EmptyBufferError, InvalidCoordinateError, InvalidOptionsError
from bgwand.services.color_service import ColorService
from bgwand.services.segmentation_service import SegmentationService

GREEN = (0, 255, 0, 255)
BLUE = (0, 0, 255, 255)
RED = (255, 0, 0, 255)


def solid(width, height, rgba):
    pixels = np.empty((height, width, 4), dtype=np.uint8)
    pixels[...] = rgba
    return pixels


def seed_color(pixels, x, y):
    return Color(*(int(v) for v in pixels[y, x, :3]))


def reference_smooth(mask, iterations):
    height, width = mask.shape
    current = mask.tolist()
    for _ in range(iterations):
        nxt = [row[:] for row in current]
        for y in range(1, height - 1):
            for x in range(1, width - 1):
                total = sum(current[y + dy][x + dx] for dy in (-1, 0, 1) for dx in (-1, 0, 1))
                nxt[y][x] = 1 if total / 9 > 0.5 else 0
        current = nxt
    return np.array(current, dtype=np.uint8)


# ---------- build_mask ----------
def test_uniform_buffer_is_all_background():
    pixels = solid(4, 4, GREEN)
    mask = SegmentationService().build_mask(pixels, 0, 0, seed_color(pixels, 0, 0), 10)
    assert mask.shape == (4, 4)
    assert mask.dtype == np.uint8
    assert mask.all()


def test_single_odd_pixel_stays_foreground():
    pixels = solid(3, 3, BLUE)
    pixels[1, 1] = RED
    mask = SegmentationService().build_mask(pixels, 0, 0, seed_color(pixels, 0, 0), 5)
    expected = np.ones((3, 3), dtype=np.uint8)
    expected[1, 1] = 0
    np.testing.assert_array_equal(mask, expected)


def test_fill_does_not_cross_a_wall():
    pixels = solid(7, 5, BLUE)
    pixels[:, 3] = RED  # full-height wall
    mask = SegmentationService().build_mask(pixels, 0, 2, seed_color(pixels, 0, 2), 5)
    assert mask[:, :3].all()
    assert not mask[:, 3:].any()


def test_fill_is_four_connected_only():
    pixels = solid(3, 3, RED)
    pixels[0, 0] = BLUE
    pixels[1, 1] = BLUE  # diagonal neighbour only
    mask = SegmentationService().build_mask(pixels, 0, 0, seed_color(pixels, 0, 0), 5)
    assert mask.sum() == 1
    assert mask[0, 0] == 1


def test_build_mask_is_idempotent():
    rng = np.random.default_rng(11)
    pixels = rng.integers(0, 256, size=(20, 30, 4), dtype=np.uint8)
    service = SegmentationService()
    color = seed_color(pixels, 4, 4)
    first = service.build_mask(pixels, 4, 4, color, 40)
    second = service.build_mask(pixels, 4, 4, color, 40)
    np.testing.assert_array_equal(first, second)


def test_mask_pixels_are_connected_and_match():
    rng = np.random.default_rng(5)
    # coarse blocks so regions are non-trivial
    blocks = rng.integers(0, 3, size=(6, 8))
    palette = np.array([BLUE, RED, GREEN], dtype=np.uint8)
    pixels = np.ascontiguousarray(palette[np.kron(blocks, np.ones((4, 4), dtype=int))])
    height, width = pixels.shape[:2]
    color = seed_color(pixels, 0, 0)

    mask = SegmentationService().build_mask(pixels, 0, 0, color, 5)

    matches = ColorService.match_map(pixels, color, 5)
    assert not (mask.astype(bool) & ~matches).any()

    # every mask pixel reachable from the seed through mask pixels
    seen = np.zeros_like(mask, dtype=bool)
    queue = deque([(0, 0)])
    seen[0, 0] = True
    while queue:
        x, y = queue.popleft()
        for nx, ny in ((x + 1, y), (x - 1, y), (x, y + 1), (x, y - 1)):
            if 0 <= nx < width and 0 <= ny < height and mask[ny, nx] and not seen[ny, nx]:
                seen[ny, nx] = True
                queue.append((nx, ny))
    np.testing.assert_array_equal(seen, mask.astype(bool))


def test_large_region_has_no_recursion_limit():
    pixels = solid(350, 350, GREEN)
    mask = SegmentationService().build_mask(pixels, 175, 175, seed_color(pixels, 0, 0), 0)
    assert int(mask.sum()) == 350 * 350


def test_seed_color_that_does_not_match_gives_empty_mask():
    pixels = solid(4, 4, GREEN)
    mask = SegmentationService().build_mask(pixels, 0, 0, Color(255, 0, 0), 0)
    assert not mask.any()


@pytest.mark.parametrize("seed", [(-1, 0), (0, -1), (4, 0), (0, 4), (10, 10)])
def test_out_of_bounds_seed_raises(seed):
    pixels = solid(4, 4, GREEN)
    with pytest.raises(InvalidCoordinateError):
        SegmentationService().build_mask(pixels, seed[0], seed[1], Color(0, 255, 0), 10)


def test_empty_buffer_raises():
    with pytest.raises(EmptyBufferError):
        SegmentationService().build_mask(np.zeros((0, 0, 4), dtype=np.uint8), 0, 0, Color(0, 0, 0), 10)


def test_negative_tolerance_raises():
    pixels = solid(2, 2, GREEN)
    with pytest.raises(InvalidOptionsError):
        SegmentationService().build_mask(pixels, 0, 0, Color(0, 255, 0), -5)


# ---------- smooth ----------
def test_smooth_never_touches_the_border():
    rng = np.random.default_rng(2)
    mask = rng.integers(0, 2, size=(8, 7), dtype=np.uint8)
    before = mask.copy()
    SegmentationService.smooth(mask, 4)
    np.testing.assert_array_equal(mask[0], before[0])
    np.testing.assert_array_equal(mask[-1], before[-1])
    np.testing.assert_array_equal(mask[:, 0], before[:, 0])
    np.testing.assert_array_equal(mask[:, -1], before[:, -1])


@pytest.mark.parametrize("value", [0, 1])
def test_uniform_mask_is_stable(value):
    mask = np.full((6, 9), value, dtype=np.uint8)
    SegmentationService.smooth(mask, 10)
    assert (mask == value).all()


def test_isolated_pixel_is_removed_and_hole_is_filled():
    speck = np.zeros((5, 5), dtype=np.uint8)
    speck[2, 2] = 1
    SegmentationService.smooth(speck, 1)
    assert not speck.any()

    hole = np.ones((5, 5), dtype=np.uint8)
    hole[2, 2] = 0
    SegmentationService.smooth(hole, 1)
    assert hole.all()


def test_smooth_reads_previous_pass_only():
    rng = np.random.default_rng(9)
    for iterations in (1, 2, 3):
        mask = rng.integers(0, 2, size=(10, 12), dtype=np.uint8)
        expected = reference_smooth(mask, iterations)
        SegmentationService.smooth(mask, iterations)
        np.testing.assert_array_equal(mask, expected)


def test_smooth_is_in_place_and_zero_iterations_is_noop():
    rng = np.random.default_rng(4)
    mask = rng.integers(0, 2, size=(6, 6), dtype=np.uint8)
    before = mask.copy()
    assert SegmentationService.smooth(mask, 0) is mask
    np.testing.assert_array_equal(mask, before)
    assert SegmentationService.smooth(mask, 2) is mask


def test_smooth_on_mask_without_interior_is_noop():
    mask = np.array([[1, 0], [0, 1]], dtype=np.uint8)
    SegmentationService.smooth(mask, 3)
    np.testing.assert_array_equal(mask, [[1, 0], [0, 1]])


def test_smooth_rejects_negative_iterations():
    with pytest.raises(InvalidOptionsError):
        SegmentationService.smooth(np.zeros((3, 3), dtype=np.uint8), -1)


@pytest.mark.parametrize("seed", [(1.0, 0), (0, 1.5), (True, 0), ("1", 1)])
def test_non_integer_seed_raises(seed):
    pixels = solid(4, 4, GREEN)
    with pytest.raises(InvalidCoordinateError):
        SegmentationService().build_mask(pixels, seed[0], seed[1], Color(0, 255, 0), 10)


def test_numpy_integer_seed_is_accepted():
    pixels = solid(3, 3, GREEN)
    mask = SegmentationService().build_mask(pixels, np.int64(1), np.int32(2), Color(0, 255, 0), 0)
    assert int(mask.sum()) == 9
