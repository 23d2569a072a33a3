#!/usr/bin/env python
# =======================================================================
# plotter.py  –  Multi-series line chart on a pygame Surface
# =======================================================================
#
# Draws any number of named series over a shared time base: nice value
# ticks, 8 time divisions with engineering labels, zero reference line,
# glow on the emphasized trace. pick_nearest() maps a pointer position
# back to the closest trace for hover highlighting.
# -----------------------------------------------------------------------
from __future__ import annotations
import math
import numpy as np
import pygame as pg

MARGINS = (56, 12, 10, 30)      # left, right, top, bottom (px)
X_DIVISIONS = 8
Y_TARGET_TICKS = 5
MAX_TICKS = 1000

BG_COL    = (255, 255, 255)
GRID_COL  = (229, 231, 235)
TEXT_COL  = (71, 85, 105)
ZERO_COL  = (148, 163, 184)
FALLBACK_COL = (17, 24, 39)

LINE_W, LINE_W_EMPH = 2, 3
GLOW_W, GLOW_ALPHA = 9, 70

PALETTE = {
    "v_o": (239, 68, 68),   "v_sw": (59, 130, 246), "v_l": (16, 185, 129),  "v_in": (124, 58, 237),
    "i_l": (245, 158, 11),  "i_c": (6, 182, 212),   "i_d": (236, 72, 153),  "i_sw": (139, 92, 246),
    "i_in": (165, 42, 42),
}


def colour_of(key:str, colours:dict|None=None) -> tuple:
    return (colours or PALETTE).get(key, FALLBACK_COL)


# ───────── AXIS MATH ─────────
def nice_step(lo:float, hi:float, target:int=Y_TARGET_TICKS) -> float:
    """Step for ~*target* gridlines over [lo, hi] from {1, 2, 2.5, 5, 10}·10^k.

    Candidates are scanned in increasing order keeping the closest to the
    raw step; the scan settles on 5·10^k as soon as it gets there.
    """
    span = max(1e-12, hi - lo)
    raw = span / target
    p = 10.0 ** math.floor(math.log10(raw))
    best, best_d = p, abs(raw - p)
    for c in (1, 2, 2.5, 5, 10):
        x = c * p
        if c == 5:
            best = x
            break
        d = abs(raw - x)
        if d < best_d: best, best_d = x, d
    return best


def make_ticks(lo:float, hi:float, step:float) -> list[float]:
    """Multiples of *step* inside [lo, hi]."""
    if not step > 0: raise ValueError(f"Tick step must be positive, got {step}")
    k0 = math.ceil(lo / step)
    k1 = math.floor((hi + 1e-12) / step + 1e-9)
    n = k1 - k0 + 1
    if n > MAX_TICKS:
        raise ValueError(f"{n} ticks of {step} over [{lo}, {hi}], limit is {MAX_TICKS}")
    # + 0.0 folds -0.0
    return [round((k0 + i) * step, 10) + 0.0 for i in range(max(0, n))]


def eng_time(val:float) -> str:
    """Seconds with an engineering prefix: ns, µs, ms or s."""
    a = abs(val)
    if a < 1e-6: return f"{val*1e9:.0f} ns"
    if a < 1e-3: return f"{val*1e6:.1f} µs"
    if a < 1:    return f"{val*1e3:.1f} ms"
    return f"{val:.3f} s"


def tick_label(v:float, step:float) -> str:
    return f"{v:.2f}" if abs(step) < 1 else f"{v:.0f}"


# ───────── GEOMETRY ─────────
class PlotArea:
    """Pixel rectangle holding the traces (axis-label margins excluded).

    Coordinates are absolute, i.e. in the same frame as pointer events.
    """
    def __init__(self, left:float, top:float, width:float, height:float):
        self.left, self.top, self.width, self.height = left, top, width, height

    @classmethod
    def for_surface(cls, size, origin=(0, 0), margins=MARGINS) -> 'PlotArea':
        w, h = size; ml, mr, mt, mb = margins
        return cls(origin[0] + ml, origin[1] + mt, w - ml - mr, h - mt - mb)

    @property
    def right(self): return self.left + self.width
    @property
    def bottom(self): return self.top + self.height

    def contains(self, px:float, py:float) -> bool:
        return self.left <= px <= self.right and self.top <= py <= self.bottom

    def x_to_px(self, x, x_min:float, x_max:float):
        return self.left + (x - x_min) / (x_max - x_min) * self.width

    def y_to_px(self, y, y_min:float, y_max:float):
        # pixel y grows downwards
        return self.top + (1 - (y - y_min) / (y_max - y_min)) * self.height

    def index_at(self, px:float, n:int) -> int:
        """Nearest sample index for horizontal pixel *px* over *n* uniform samples."""
        frac = (px - self.left) / self.width
        return max(0, min(n - 1, math.floor(frac * (n - 1) + 0.5)))

    def __repr__(self):
        return f"PlotArea({self.left}, {self.top}, {self.width}, {self.height})"


def _check_axes(t, y_min, y_max):
    if len(t) < 2:
        raise ValueError("Time base needs at least 2 samples")
    if not (math.isfinite(y_min) and math.isfinite(y_max) and y_max > y_min):
        raise ValueError(f"Degenerate value range [{y_min}, {y_max}]")


_font = None

def _default_font():
    # re-created after pg.quit(), which invalidates fonts
    global _font
    if _font is None or not pg.font.get_init():
        pg.font.init()
        _font = pg.font.Font(None, 14)
    return _font


# ───────── RENDER ─────────
def render(surface:pg.Surface, t, series:dict, y_min:float, y_max:float,
           emphasized:str|None=None, colours:dict|None=None, font=None) -> PlotArea:
    """Draws a gridded line chart of *series* (key -> samples) onto *surface*.

    The whole surface is used; pass a subsurface to draw into part of a
    window. Returns the PlotArea in absolute coordinates so the caller can
    hit-test pointer events with pick_nearest().
    """
    _check_axes(t, y_min, y_max)
    font = font or _default_font()
    W, H = surface.get_size()
    area = PlotArea.for_surface((W, H))
    ml = MARGINS[0]
    x_min, x_max = float(t[0]), float(t[-1])

    surface.fill(BG_COL)

    # vertical grid: fixed time divisions
    for i in range(X_DIVISIONS + 1):
        x = area.left + area.width * i / X_DIVISIONS
        pg.draw.line(surface, GRID_COL, (x, area.top), (x, area.bottom))
        lbl = font.render(eng_time(x_min + (x_max - x_min) * i / X_DIVISIONS), True, TEXT_COL)
        surface.blit(lbl, lbl.get_rect(centerx=round(x), top=H - 22))

    # horizontal grid: nice value steps
    step = nice_step(y_min, y_max, Y_TARGET_TICKS)
    for v in make_ticks(y_min, y_max, step):
        y = area.y_to_px(v, y_min, y_max)
        pg.draw.line(surface, GRID_COL, (area.left, y), (area.right, y))
        lbl = font.render(tick_label(v, step), True, TEXT_COL)
        surface.blit(lbl, lbl.get_rect(right=ml - 6, centery=round(y)))

    if y_min < 0 < y_max:
        zy = area.y_to_px(0.0, y_min, y_max)
        pg.draw.line(surface, ZERO_COL, (area.left, zy), (area.right, zy))

    xs = area.x_to_px(np.asarray(t, dtype=float), x_min, x_max)
    for key, arr in series.items():
        if arr is None: continue
        arr = np.asarray(arr, dtype=float)
        if not np.isfinite(arr).all(): continue    # overflowed model, nothing to draw
        col = colour_of(key, colours)
        ys = area.y_to_px(arr, y_min, y_max)
        pts = np.column_stack((xs, ys)).tolist()
        if key == emphasized:
            glow = pg.Surface((W, H), pg.SRCALPHA)
            pg.draw.lines(glow, (*col, GLOW_ALPHA), False, pts, GLOW_W)
            surface.blit(glow, (0, 0))
            pg.draw.lines(surface, col, False, pts, LINE_W_EMPH)
        else:
            pg.draw.lines(surface, col, False, pts, LINE_W)

    ox, oy = surface.get_abs_offset()
    return PlotArea(area.left + ox, area.top + oy, area.width, area.height)


# ───────── PICKING ─────────
def pick_nearest(px:float, py:float, t, series:dict, y_min:float, y_max:float,
                 area:PlotArea) -> str|None:
    """Key of the trace vertically closest to the pointer, None outside *area*."""
    if not area.contains(px, py): return None
    idx = area.index_at(px, len(t))
    best, dist = None, math.inf
    for key, arr in series.items():
        if arr is None: continue
        d = abs(area.y_to_px(float(arr[idx]), y_min, y_max) - py)
        if d < dist: best, dist = key, d
    return best
