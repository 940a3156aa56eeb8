import pytest

from image_converter.dimensions import (
    Dimensions,
    calculate_dimensions,
    fit_to_page,
    thumbnail_dimensions,
)


@pytest.mark.parametrize("args, expected", [
    ((2000, 1000, 1000, None, True), Dimensions(1000, 500)),
    ((1000, 2000, None, 1000, True), Dimensions(500, 1000)),
    ((2000, 2000, 1000, 1500, True), Dimensions(1000, 1000)),
    ((800, 600, None, None, True), Dimensions(800, 600)),
    ((800, 600, None, None, False), Dimensions(800, 600)),
])
def test_calculate_dimensions_reference_cases(args, expected):
    assert calculate_dimensions(*args) == expected


def test_calculate_dimensions_is_deterministic():
    first = calculate_dimensions(1234, 567, 800, 300, True)
    assert all(calculate_dimensions(1234, 567, 800, 300, True) == first for _ in range(5))


def test_height_pass_corrects_width_driven_overflow():
    # Width pass gives 800x400, height pass then shrinks to 600x300
    assert calculate_dimensions(1000, 500, 800, 300, True) == Dimensions(600, 300)


def test_bounds_larger_than_image_leave_it_unchanged():
    assert calculate_dimensions(640, 480, 1920, 1080, True) == Dimensions(640, 480)


def test_unlocked_clamps_each_side_independently():
    assert calculate_dimensions(2000, 1000, 800, 1200, False) == Dimensions(800, 1000)
    assert calculate_dimensions(2000, 1000, None, 300, False) == Dimensions(2000, 300)


def test_non_positive_bounds_are_ignored():
    assert calculate_dimensions(800, 600, 0, None, True) == Dimensions(800, 600)
    assert calculate_dimensions(800, 600, -5, 0, False) == Dimensions(800, 600)


def test_rounds_half_up():
    # 1 * 2.5 = 2.5 must round to 3
    assert calculate_dimensions(5, 2, None, 1, True) == Dimensions(3, 1)


def test_minimum_one_pixel():
    assert calculate_dimensions(1000, 1, 10, None, True) == Dimensions(10, 1)


@pytest.mark.parametrize("size, expected", [
    ((200, 100), Dimensions(120, 60)),
    ((100, 200), Dimensions(60, 120)),
    ((100, 100), Dimensions(120, 120)),
])
def test_thumbnail_dimensions(size, expected):
    assert thumbnail_dimensions(*size, 120) == expected


def test_fit_to_page_wide_image_fills_width_and_is_centered():
    placement = fit_to_page(2000, 1000, 612, 792, 10)
    assert placement.width == pytest.approx(592)
    assert placement.height == pytest.approx(296)
    assert placement.x == pytest.approx(10)
    assert placement.y == pytest.approx(248)
    # Equal left and right margins
    assert placement.x == pytest.approx(612 - placement.x - placement.width)


def test_fit_to_page_tall_image_fills_height():
    placement = fit_to_page(1000, 2000, 612, 792, 10)
    assert placement.height == pytest.approx(772)
    assert placement.width == pytest.approx(386)
    assert placement.x == pytest.approx(113)
    assert placement.y == pytest.approx(10)
