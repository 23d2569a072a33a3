"""
Pytest suite for the series plotter:
- Nice tick steps and tick generation
- Engineering time labels
- Plot geometry (pixel mapping, sample lookup)
- Nearest-trace picking
- Rendering onto off-screen surfaces
"""

import pytest
import numpy as np
import pygame as pg

from plotter import (nice_step, make_ticks, eng_time, tick_label, PlotArea, MARGINS, Y_TARGET_TICKS,
                     render, pick_nearest, PALETTE, BG_COL)


# ──────────────────────────────────────────────── Fixtures

@pytest.fixture
def surface():
    return pg.Surface((400, 300))


@pytest.fixture
def area():
    """400x300 surface minus margins -> left 56, top 10, 332 x 260"""
    return PlotArea.for_surface((400, 300))


@pytest.fixture
def t():
    return np.linspace(0.0, 1e-5, 101)


# ──────────────────────────────────────────────── Ticks

def test_nice_step_reference_case():
    assert nice_step(0, 23, 5) == 5


@pytest.mark.parametrize("lo, hi, expected", [(0, 0.5, 0.5), (0, 230, 50), (-1.1, 1.87, 0.5)])
def test_nice_step_prefers_five(lo, hi, expected):
    assert nice_step(lo, hi) == pytest.approx(expected)


def test_nice_step_degenerate_span():
    assert nice_step(3, 3) > 0


def test_make_ticks_reference_case():
    assert make_ticks(0, 23, 5) == [0, 5, 10, 15, 20]


def test_make_ticks_straddling_zero():
    assert make_ticks(-1.3, 1.3, 0.5) == [-1.0, -0.5, 0.0, 0.5, 1.0]


def test_make_ticks_includes_upper_bound():
    assert make_ticks(0, 1, 0.25) == [0.0, 0.25, 0.5, 0.75, 1.0]


def test_make_ticks_narrow_range_far_from_zero():
    # step is below the float spacing at 1e6, so stepping by addition stalls
    lo = 1e6
    hi = np.nextafter(np.nextafter(lo, np.inf), np.inf)
    step = nice_step(lo, hi)
    assert lo + step == lo
    ticks = make_ticks(lo, hi, step)
    assert len(ticks) <= 2 * Y_TARGET_TICKS + 1


def test_make_ticks_rejects_runaway_count():
    with pytest.raises(ValueError, match="limit"):
        make_ticks(0, 1e6, 1e-3)


def test_make_ticks_rejects_bad_step():
    with pytest.raises(ValueError):
        make_ticks(0, 1, 0)


@pytest.mark.parametrize("val, expected", [
    (0.0, "0 ns"),
    (500e-9, "500 ns"),
    (2.5e-6, "2.5 µs"),
    (2.5e-3, "2.5 ms"),
    (2.0, "2.000 s"),
])
def test_eng_time(val, expected):
    assert eng_time(val) == expected


def test_tick_label_precision():
    assert tick_label(0.5, 0.5) == "0.50"
    assert tick_label(10, 5) == "10"


# ──────────────────────────────────────────────── Geometry

def test_area_from_surface(area):
    ml, mr, mt, mb = MARGINS
    assert (area.left, area.top) == (ml, mt)
    assert area.width == 400 - ml - mr
    assert area.height == 300 - mt - mb


def test_pixel_mapping(area):
    assert area.x_to_px(0.0, 0.0, 2.0) == area.left
    assert area.x_to_px(2.0, 0.0, 2.0) == area.right
    # value axis is inverted
    assert area.y_to_px(5.0, -5.0, 5.0) == area.top
    assert area.y_to_px(-5.0, -5.0, 5.0) == area.bottom
    assert area.y_to_px(0.0, -5.0, 5.0) == pytest.approx(area.top + area.height / 2)


def test_contains(area):
    assert area.contains(area.left, area.top)
    assert area.contains(area.right, area.bottom)
    assert not area.contains(area.left - 1, area.top + 5)
    assert not area.contains(area.left + 5, area.bottom + 1)


def test_index_at(area):
    assert area.index_at(area.left, 101) == 0
    assert area.index_at(area.right, 101) == 100
    assert area.index_at(area.left + area.width / 2, 101) == 50
    assert area.index_at(area.left - 50, 101) == 0


# ──────────────────────────────────────────────── Picking

def test_pick_returns_series_under_pointer(area, t):
    series = {"far": np.full_like(t, 9.0), "near": np.linspace(-1, 1, len(t))}
    px = area.left + area.width / 2
    py = area.y_to_px(0.0, -10, 10)
    assert pick_nearest(px, py, t, series, -10, 10, area) == "near"


def test_pick_follows_sample_index(area, t):
    series = {"a": np.where(t < 5e-6, 1.0, -1.0), "b": np.where(t < 5e-6, -1.0, 1.0)}
    py = area.y_to_px(1.0, -2, 2)
    assert pick_nearest(area.left + 1, py, t, series, -2, 2, area) == "a"
    assert pick_nearest(area.right - 1, py, t, series, -2, 2, area) == "b"


def test_pick_tie_goes_to_first(area, t):
    series = {"first": np.zeros_like(t), "second": np.zeros_like(t)}
    py = area.y_to_px(0.0, -1, 1)
    assert pick_nearest(area.left + 10, py, t, series, -1, 1, area) == "first"


def test_pick_outside_area(area, t):
    series = {"a": np.zeros_like(t)}
    assert pick_nearest(area.left - 5, area.top + 5, t, series, -1, 1, area) is None
    assert pick_nearest(area.left + 5, area.bottom + 5, t, series, -1, 1, area) is None


def test_pick_without_series(area, t):
    assert pick_nearest(area.left + 5, area.top + 5, t, {}, -1, 1, area) is None


# ──────────────────────────────────────────────── Rendering

def test_render_draws_trace_colour(surface, t):
    # 0.75 on [0, 1] lands on pixel row 10 + 0.25 * 260 = 75
    area = render(surface, t, {"v_o": np.full_like(t, 0.75)}, 0.0, 1.0)
    assert tuple(surface.get_at((200, 75)))[:3] == PALETTE["v_o"]
    assert tuple(surface.get_at((200, 90)))[:3] == BG_COL
    assert (area.left, area.top) == (MARGINS[0], MARGINS[2])


def test_render_emphasis_adds_glow(surface, t):
    series = {"v_o": np.full_like(t, 0.75)}
    render(surface, t, series, 0.0, 1.0)
    assert tuple(surface.get_at((200, 77)))[:3] == BG_COL
    render(surface, t, series, 0.0, 1.0, emphasized="v_o")
    assert tuple(surface.get_at((200, 77)))[:3] != BG_COL
    assert tuple(surface.get_at((200, 75)))[:3] == PALETTE["v_o"]


def test_render_custom_colours(surface, t):
    render(surface, t, {"x": np.full_like(t, 0.75)}, 0.0, 1.0, colours={"x": (1, 2, 3)})
    assert tuple(surface.get_at((200, 75)))[:3] == (1, 2, 3)


def test_render_empty_selection_draws_grid(surface, t):
    area = render(surface, t, {}, -1.0, 1.0)
    assert area.width > 0
    # zero line across the middle of the value range
    zy = round(area.y_to_px(0.0, -1.0, 1.0))
    assert tuple(surface.get_at((200, zy)))[:3] != BG_COL


def test_render_into_subsurface_reports_absolute_area(t):
    window = pg.Surface((800, 600))
    sub = window.subsurface(pg.Rect(300, 200, 400, 300))
    area = render(sub, t, {"i_l": np.zeros_like(t)}, -1.0, 1.0)
    assert (area.left, area.top) == (300 + MARGINS[0], 200 + MARGINS[2])


def test_render_narrow_range_far_from_zero(surface, t):
    lo = 1e6
    hi = np.nextafter(np.nextafter(lo, np.inf), np.inf)
    area = render(surface, t, {"v_o": np.full_like(t, lo)}, lo, hi)
    assert area.width > 0


def test_render_skips_non_finite_series(surface, t):
    trace = np.full_like(t, 0.75)
    trace[-1] = np.inf
    render(surface, t, {"v_o": trace, "i_l": np.full_like(t, np.nan)}, 0.0, 1.0)
    assert tuple(surface.get_at((200, 75)))[:3] == BG_COL


def test_render_rejects_degenerate_range(surface, t):
    with pytest.raises(ValueError, match="Degenerate"):
        render(surface, t, {}, 1.0, 1.0)
    with pytest.raises(ValueError, match="Degenerate"):
        render(surface, t, {}, 0.0, float("nan"))


def test_render_rejects_short_time_base(surface):
    with pytest.raises(ValueError):
        render(surface, np.array([0.0]), {}, 0.0, 1.0)
