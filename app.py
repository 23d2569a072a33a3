#!/usr/bin/env python
# =======================================================================
# app.py  –  Buck Converter Canvas  (ideal CCM steady-state waveforms)
# =======================================================================
#
# Left panel: converter parameters, waveform toggles, legend.
# Top: schematic with probe points (click = voltage, Ctrl/Cmd-click = current).
# Right: voltage and current plots; hover a trace or legend entry to highlight it.
# Window size and simulation settings are read from config.cfg.
#
# Shortcuts (Full legend: T key)
#   Click row=Type value, Wheel=Step value, 1-9=Toggle waveform, R=Reset, T=Legend
# -----------------------------------------------------------------------
from __future__ import annotations
import sys, math
import configparser
import os
import pygame as pg

from buck import (CircuitParameters, synthesize, KEYS, N_SAMPLES,
                  INTEGRATION_SCHEMES)
from plotter import render, pick_nearest, colour_of
from selection import (Selection, LABELS, DEFAULT_KEYS, PROBES, probe_key, legend,
                       voltage_bounds, current_bounds)
from units import parse_value, value_to_str

# --- Configuration Loading ---
CONFIG_FILE = "config.cfg"

DEFAULT_SIZE_SCALE = 1.0
DEFAULT_FONT_SCALE = 1.0
DEFAULT_BASE_WIN_W = 1220
DEFAULT_BASE_WIN_H = 820
DEFAULT_SAMPLES = N_SAMPLES
DEFAULT_INTEGRATION = "rect"

SIZE_SCALE = DEFAULT_SIZE_SCALE
FONT_SCALE = DEFAULT_FONT_SCALE
BASE_WIN_W = DEFAULT_BASE_WIN_W
BASE_WIN_H = DEFAULT_BASE_WIN_H
SAMPLES = DEFAULT_SAMPLES
INTEGRATION = DEFAULT_INTEGRATION


def _reset_config():
    global SIZE_SCALE, FONT_SCALE, BASE_WIN_W, BASE_WIN_H, SAMPLES, INTEGRATION
    SIZE_SCALE, FONT_SCALE = DEFAULT_SIZE_SCALE, DEFAULT_FONT_SCALE
    BASE_WIN_W, BASE_WIN_H = DEFAULT_BASE_WIN_W, DEFAULT_BASE_WIN_H
    SAMPLES, INTEGRATION = DEFAULT_SAMPLES, DEFAULT_INTEGRATION


def load_config(path:str=CONFIG_FILE) -> bool:
    """Reads *path* and updates the global settings. Returns True if anything was loaded."""
    global SIZE_SCALE, FONT_SCALE, BASE_WIN_W, BASE_WIN_H, SAMPLES, INTEGRATION
    _reset_config()
    if not os.path.exists(path):
        return False

    config = configparser.ConfigParser()
    config_loaded = False
    try:
        config.read(path, encoding="utf-8")

        if 'GUI' in config:
            gui = config['GUI']
            SIZE_SCALE = gui.getfloat('size_scale', DEFAULT_SIZE_SCALE)
            FONT_SCALE = gui.getfloat('font_scale', DEFAULT_FONT_SCALE)
            BASE_WIN_W = gui.getint('base_win_w', DEFAULT_BASE_WIN_W)
            BASE_WIN_H = gui.getint('base_win_h', DEFAULT_BASE_WIN_H)
            if SIZE_SCALE <= 0 or FONT_SCALE <= 0:
                raise ValueError("size_scale and font_scale must be positive")
            config_loaded = True
        else:
            print(f"Warning: '{path}' found but no '[GUI]' section. Using default GUI settings.")

        if 'SIMULATION' in config:
            sim = config['SIMULATION']
            SAMPLES = sim.getint('samples', DEFAULT_SAMPLES)
            if SAMPLES < 2:
                print(f"Warning: samples={SAMPLES} in '{path}' is too small. Using {DEFAULT_SAMPLES}.")
                SAMPLES = DEFAULT_SAMPLES
            INTEGRATION = sim.get('integration', DEFAULT_INTEGRATION).strip().lower()
            if INTEGRATION not in INTEGRATION_SCHEMES:
                print(f"Warning: unknown integration '{INTEGRATION}' in '{path}'. Using '{DEFAULT_INTEGRATION}'.")
                INTEGRATION = DEFAULT_INTEGRATION
            config_loaded = True

    except (configparser.Error, ValueError) as e:
        print(f"Error reading or parsing '{path}': {e}. Using default settings.")
        _reset_config()
        return False
    return config_loaded

load_config()


# ───────── UI CONSTANTS (Scaled, derived from loaded config) ─────────
WIN_W, WIN_H = int(BASE_WIN_W*SIZE_SCALE), int(BASE_WIN_H*SIZE_SCALE)
PANEL_W  = int(300*SIZE_SCALE)
SCH_H    = int(170*SIZE_SCALE)
INFO_H   = int(60*SIZE_SCALE)
ROW_H    = int(24*SIZE_SCALE)
PAD      = int(10*SIZE_SCALE)
TITLE_H  = int(22*SIZE_SCALE)
FPS      = 60
FLASH_MS = 400

FONT_PRIMARY_NAME = "DejaVu Sans, Segoe UI, Arial, sans-serif"
FONT_MONO_NAME = "DejaVu Sans Mono, Consolas, Courier New, monospace"

BG_COL     = (40, 45, 50)
PANEL_COL  = (45, 50, 55)
TEXT_COL   = (220, 220, 255)
DIM_COL    = (150, 150, 170)
WARN_COL   = (255, 170, 90)
HOVER_COL  = (70, 80, 95)
ACTIVE_COL = (255, 255, 180)
WIRE_COL   = (220, 220, 130)

_PLOT_AREA = pg.Rect(PANEL_W, SCH_H, WIN_W - PANEL_W, WIN_H - INFO_H - SCH_H)
_half = _PLOT_AREA.h // 2
V_RECT = pg.Rect(_PLOT_AREA.x + PAD, _PLOT_AREA.y + TITLE_H, _PLOT_AREA.w - 2*PAD, _half - TITLE_H - PAD//2)
I_RECT = pg.Rect(_PLOT_AREA.x + PAD, _PLOT_AREA.y + _half + TITLE_H, _PLOT_AREA.w - 2*PAD, _half - TITLE_H - PAD//2)


# ───────── PARAMETER ROWS ─────────
# field -> (label, unit, step kind, coarse step, fine step)
PARAM_ROWS = {
    "input_voltage":       ("Vin",     "V", "add", 1.0,       0.1),
    "switching_frequency": ("fsw",     "Hz","mul", 10**0.1,   10**0.025),
    "duty_ratio":          ("D",       "",  "add", 0.05,      0.01),
    "inductance":          ("L",       "H", "mul", 10**0.1,   10**0.025),
    "capacitance":         ("C",       "F", "mul", 10**0.1,   10**0.025),
    "load_resistance":     ("R",       "Ω", "mul", 10**0.1, 10**0.025),
    "period_count":        ("Periods", "",  "add", 1,         1),
}
POSITIVE_FIELDS = ("switching_frequency", "inductance", "capacitance", "load_resistance")


def format_param(field:str, val) -> str:
    unit = PARAM_ROWS[field][1]
    if field == "duty_ratio": return f"{val:.2f}"
    if field == "period_count": return f"{int(val)}"
    return f"{value_to_str(val)}{unit}"


def step_value(field:str, val:float, up:bool, fine:bool=False) -> float:
    """Next value of *field* for one wheel notch."""
    kind, coarse, fine_step = PARAM_ROWS[field][2:]
    step = fine_step if fine else coarse
    if kind == "mul":
        return val * step if up else val / step
    return round(val + (step if up else -step), 6)


# ───────── APP ────────────
class App:
    def __init__(self):
        pg.init()
        self.font = self._sys_font(FONT_PRIMARY_NAME, 15)
        self.font_small = self._sys_font(FONT_MONO_NAME, 13)
        self.font_tiny = self._sys_font(FONT_MONO_NAME, 11)
        self.scr = pg.display.set_mode((WIN_W, WIN_H))
        pg.display.set_caption("Buck Converter Canvas (ideal CCM)")
        self.clock = pg.time.Clock()

        self.params = CircuitParameters()
        self.sel = Selection(DEFAULT_KEYS)
        self.wf = None
        self.hover_key:str|None = None
        self.show_help = False

        # coalesce: events only flag, run() recomputes/redraws once per frame
        self.params_dirty = True
        self.dirty = True

        self.prompt = ""; self.input_buffer = ""; self.active_param:str|None = None
        self.flash_comp:str|None = None; self.flash_until = 0
        self.status = "Click a parameter to edit, click the schematic to probe. (T=Legend)"

        # plot name -> (series, y_min, y_max, PlotArea) of the last draw
        self.plots = {}

        y = PAD + TITLE_H
        self.param_rects = {}
        for field in PARAM_ROWS:
            self.param_rects[field] = pg.Rect(PAD, y, PANEL_W - 2*PAD, ROW_H - 2)
            y += ROW_H
        y += TITLE_H
        self.toggle_rects = {}
        for key in KEYS:
            self.toggle_rects[key] = pg.Rect(PAD, y, PANEL_W - 2*PAD, ROW_H - 2)
            y += ROW_H
        self.legend_top = y + TITLE_H
        self.legend_rects = {}
        self.comp_rects = self._schematic_layout()

    @staticmethod
    def _sys_font(name:str, size:int):
        try: return pg.font.SysFont(name, int(size * FONT_SCALE))
        except Exception: return pg.font.Font(None, int(size * FONT_SCALE))

    def _schematic_layout(self):
        """Component boxes of the schematic strip: name -> Rect."""
        x0, w = PANEL_W, WIN_W - PANEL_W
        hw, hh = int(64*SIZE_SCALE), int(30*SIZE_SCALE)    # horizontal part
        vw, vh = int(34*SIZE_SCALE), int(56*SIZE_SCALE)    # vertical part
        self.rail_y = int(SCH_H * 0.28)
        self.gnd_y = int(SCH_H * 0.86)
        mid_y = (self.rail_y + self.gnd_y) // 2
        rects = {}
        for name, fx, horiz in (("Vin", 0.08, False), ("S", 0.27, True), ("D", 0.45, False),
                                ("L", 0.60, True), ("C", 0.78, False), ("R", 0.92, False)):
            cx = x0 + int(w * fx)
            if horiz: rects[name] = pg.Rect(cx - hw//2, self.rail_y - hh//2, hw, hh)
            else: rects[name] = pg.Rect(cx - vw//2, mid_y - vh//2, vw, vh)
        return rects

    # ───────── hit-testing ─────────
    def get_param_at(self, x, y):
        for field, r in self.param_rects.items():
            if r.collidepoint(x, y): return field
        return None

    def get_toggle_at(self, x, y):
        for key, r in self.toggle_rects.items():
            if r.collidepoint(x, y): return key
        return None

    def get_comp_at(self, x, y):
        for name, r in self.comp_rects.items():
            if r.collidepoint(x, y): return name
        return None

    def get_legend_at(self, x, y):
        for key, r in self.legend_rects.items():
            if r.collidepoint(x, y): return key
        return None

    def update_hover(self, mx, my):
        """Sets the emphasized key from the pointer position and returns it."""
        key = self.get_legend_at(mx, my)
        if key is None and self.wf is not None:
            for series, lo, hi, area in self.plots.values():
                if area.contains(mx, my):
                    key = pick_nearest(mx, my, self.wf.t, series, lo, hi, area)
                    break
        if key != self.hover_key:
            self.hover_key = key; self.dirty = True
        return key

    # ───────── state changes ─────────
    def recompute(self):
        self.wf = synthesize(self.params, SAMPLES, INTEGRATION)
        self.params_dirty = False
        self.dirty = True

    def set_param(self, field:str, val:float):
        if field == "period_count": val = int(math.floor(val + 0.5))
        self.params = self.params.replace(**{field: val})
        self.params_dirty = True
        self.status = f"Set {PARAM_ROWS[field][0]} to {format_param(field, val)}"

    def step_param(self, field:str, up:bool, fine:bool=False):
        val = step_value(field, getattr(self.params, field), up, fine)
        # keep wheel steps inside the valid range
        val = getattr(self.params.replace(**{field: val}).clamped(), field)
        self.set_param(field, val)

    def toggle_key(self, key:str):
        on = self.sel.toggle(key)
        if not on and self.hover_key == key: self.hover_key = None
        self.status = f"{LABELS[key]} {'shown' if on else 'hidden'}"
        self.dirty = True

    def probe(self, comp:str, current:bool):
        key = probe_key(comp, current)
        self.flash_comp, self.flash_until = comp, pg.time.get_ticks() + FLASH_MS
        if key is None:
            self.status = f"{comp}: no current trace (load current is Io)"
            self.dirty = True
            return
        self.toggle_key(key)

    def reset_params(self):
        self.params = CircuitParameters()
        self.params_dirty = True
        self.sel.clear()
        for key in DEFAULT_KEYS: self.sel.add(key)
        self.reset_action()
        self.status = "Parameters and waveforms reset to defaults."

    def reset_action(self):
        """Clears the prompt and hover state."""
        self.prompt = ""; self.input_buffer = ""; self.active_param = None
        self.hover_key = None
        self.dirty = True

    def start_prompt(self, field:str):
        self.active_param = field
        label = PARAM_ROWS[field][0]
        self.prompt = f"{label} (now={format_param(field, getattr(self.params, field))}): "
        self.input_buffer = ""
        self.status = self.prompt
        self.dirty = True

    def process_prompt_input(self):
        """Applies the typed value to the active parameter."""
        input_str = self.input_buffer.strip()
        field = self.active_param
        if not input_str or field is None:
            self.reset_action(); self.status = "Edit cancelled."; return

        new_val = parse_value(input_str)
        label = PARAM_ROWS[field][0]
        if new_val is None:
            self.status = f"Invalid input: '{self.input_buffer}'"
        elif field in POSITIVE_FIELDS and new_val <= 0:
            self.status = f"{label} must be positive: '{self.input_buffer}'"
        else:
            self.set_param(field, new_val)
        self.prompt = ""; self.input_buffer = ""; self.active_param = None
        self.dirty = True

    # ───────── main loop ─────────
    def run(self):
        """Main application loop."""
        running = True
        while running:
            self.clock.tick(FPS)
            self.handle_events()
            if self.flash_comp and pg.time.get_ticks() >= self.flash_until:
                self.flash_comp = None; self.dirty = True
            if self.params_dirty:
                self.recompute()
            if self.dirty or self.prompt:
                self.draw()

    def handle_events(self):
        """Handles Pygame events (keyboard, mouse)."""
        mods = pg.key.get_mods()
        ctrl_pressed = mods & (pg.KMOD_CTRL | pg.KMOD_META)
        shift_pressed = mods & pg.KMOD_SHIFT
        for e in pg.event.get():
            if e.type == pg.QUIT:
                pg.quit()
                sys.exit()

            if self.prompt and e.type == pg.KEYDOWN:
                if e.key in (pg.K_RETURN, pg.K_KP_ENTER): self.process_prompt_input()
                elif e.key == pg.K_BACKSPACE: self.input_buffer = self.input_buffer[:-1]
                elif e.key == pg.K_ESCAPE: self.reset_action(); self.status = "Input cancelled."
                elif e.unicode.isprintable(): self.input_buffer += e.unicode
                continue

            if e.type == pg.KEYDOWN:
                if e.key == pg.K_ESCAPE:
                    if self.show_help: self.show_help = False; self.status = "Legend closed."
                    else: self.reset_action(); self.status = "Cancelled."
                    self.dirty = True
                elif e.key in (pg.K_t, pg.K_h, pg.K_QUESTION):
                    self.show_help = not self.show_help
                    self.status = "Legend " + ("shown" if self.show_help else "hidden")
                    self.dirty = True
                elif e.key == pg.K_r:
                    self.reset_params()
                elif pg.K_1 <= e.key <= pg.K_9:
                    idx = e.key - pg.K_1
                    if idx < len(KEYS): self.toggle_key(KEYS[idx])

            elif e.type == pg.MOUSEBUTTONDOWN and e.button == 1:
                if self.show_help:
                    self.show_help = False; self.dirty = True; continue
                mx, my = e.pos
                field = self.get_param_at(mx, my)
                key = self.get_toggle_at(mx, my)
                comp = self.get_comp_at(mx, my)
                if field: self.start_prompt(field)
                elif key: self.toggle_key(key)
                elif comp: self.probe(comp, bool(ctrl_pressed))

            elif e.type == pg.MOUSEMOTION:
                self.update_hover(*e.pos)
                self.dirty = True    # row / part hover highlights

            elif e.type == pg.WINDOWLEAVE:
                if self.hover_key is not None:
                    self.hover_key = None; self.dirty = True

            elif e.type == pg.MOUSEWHEEL and not self.prompt:
                field = self.get_param_at(*pg.mouse.get_pos())
                if field and e.y:
                    self.step_param(field, e.y > 0, bool(shift_pressed))

    # ───────── Drawing ─────────
    def draw(self):
        """Main drawing function."""
        self.scr.fill(BG_COL)
        self.draw_schematic()
        self.draw_panel()
        self.draw_plots()
        self.draw_info_bar()
        if self.show_help: self.draw_legend()
        else: self.draw_mini_legend()
        pg.display.flip()
        self.dirty = False

    def draw_schematic(self):
        """Draws the buck schematic strip with its probe points."""
        thick = max(1, int(2*SIZE_SCALE))
        r = self.comp_rects
        x_l, x_r = r["Vin"].centerx, r["R"].centerx
        pg.draw.line(self.scr, WIRE_COL, (x_l, self.rail_y), (x_r, self.rail_y), thick)
        pg.draw.line(self.scr, WIRE_COL, (x_l, self.gnd_y), (x_r, self.gnd_y), thick)
        for name in ("Vin", "D", "C", "R"):
            cx = r[name].centerx
            pg.draw.line(self.scr, WIRE_COL, (cx, self.rail_y), (cx, self.gnd_y), thick)
        pg.draw.circle(self.scr, WIRE_COL, (r["D"].centerx, self.rail_y), int(4*SIZE_SCALE))

        mx, my = pg.mouse.get_pos()
        br = int(6*SIZE_SCALE)
        for name, rect in r.items():
            v_key, i_key = PROBES[name]
            probed = v_key in self.sel or (i_key is not None and i_key in self.sel)
            base = (120, 170, 255) if probed else (170, 175, 185)
            if rect.collidepoint(mx, my) or name == self.flash_comp:
                base = tuple(min(255, c + 50) for c in base)
            pg.draw.rect(self.scr, base, rect, border_radius=br)
            pg.draw.rect(self.scr, (60, 60, 60), rect, max(1, int(SIZE_SCALE)), border_radius=br)
            lbl = self.font.render(name, True, (0, 0, 0))
            self.scr.blit(lbl, lbl.get_rect(center=rect.center))

        hint = self.font_tiny.render("Click part = voltage   Ctrl/Cmd+Click = current", True, DIM_COL)
        self.scr.blit(hint, hint.get_rect(right=WIN_W - PAD, top=int(4*SIZE_SCALE)))

    def draw_panel(self):
        """Draws the parameter rows, waveform toggles and legend."""
        pg.draw.rect(self.scr, PANEL_COL, (0, 0, PANEL_W, WIN_H - INFO_H))
        mx, my = pg.mouse.get_pos()
        clamped = self.params.clamped()

        self.scr.blit(self.font.render("Parameters", True, TEXT_COL), (PAD, PAD))
        for field, rect in self.param_rects.items():
            if field == self.active_param: pg.draw.rect(self.scr, (90, 90, 60), rect, border_radius=4)
            elif rect.collidepoint(mx, my): pg.draw.rect(self.scr, HOVER_COL, rect, border_radius=4)
            raw = getattr(self.params, field)
            # values outside the model range are shown in orange
            col = WARN_COL if raw != getattr(clamped, field) else TEXT_COL
            lbl = self.font_small.render(PARAM_ROWS[field][0], True, DIM_COL)
            val = self.font_small.render(format_param(field, raw), True, col)
            self.scr.blit(lbl, lbl.get_rect(left=rect.left + 6, centery=rect.centery))
            self.scr.blit(val, val.get_rect(right=rect.right - 6, centery=rect.centery))

        top = next(iter(self.toggle_rects.values())).top - TITLE_H
        self.scr.blit(self.font.render("Waveforms", True, TEXT_COL), (PAD, top))
        box = int(12*SIZE_SCALE)
        for i, (key, rect) in enumerate(self.toggle_rects.items()):
            if rect.collidepoint(mx, my): pg.draw.rect(self.scr, HOVER_COL, rect, border_radius=4)
            sq = pg.Rect(0, 0, box, box); sq.midleft = (rect.left + 6, rect.centery)
            col = colour_of(key)
            if key in self.sel: pg.draw.rect(self.scr, col, sq)
            pg.draw.rect(self.scr, col, sq, 1)
            txt = self.font_small.render(f"{i+1}  {LABELS[key]}", True, TEXT_COL)
            self.scr.blit(txt, txt.get_rect(left=sq.right + 8, centery=rect.centery))

        self.scr.blit(self.font.render("Legend", True, TEXT_COL), (PAD, self.legend_top - TITLE_H))
        self.legend_rects = {}
        y = self.legend_top
        for key, label, col in legend(self.sel):
            rect = pg.Rect(PAD, y, PANEL_W - 2*PAD, ROW_H - 2)
            if key == self.hover_key:
                pg.draw.rect(self.scr, col, rect, max(1, int(2*SIZE_SCALE)), border_radius=4)
            sw = pg.Rect(0, 0, int(18*SIZE_SCALE), int(6*SIZE_SCALE)); sw.midleft = (rect.left + 6, rect.centery)
            pg.draw.rect(self.scr, col, sw)
            txt = self.font_small.render(label, True, col)
            self.scr.blit(txt, txt.get_rect(left=sw.right + 8, centery=rect.centery))
            self.legend_rects[key] = rect
            y += ROW_H

    def draw_plots(self):
        """Draws the voltage and current plots and remembers their geometry."""
        if self.wf is None: return
        wf = self.wf
        self.plots = {}
        v_series = wf.subset(self.sel.voltages())
        i_series = wf.subset(self.sel.currents())
        for name, rect, series, bounds in (
                ("Voltages", V_RECT, v_series, voltage_bounds(v_series, wf.params.input_voltage)),
                ("Currents", I_RECT, i_series, current_bounds(i_series))):
            lo, hi = bounds
            area = render(self.scr.subsurface(rect), wf.t, series, lo, hi,
                          emphasized=self.hover_key, font=self.font_tiny)
            self.plots[name] = (series, lo, hi, area)
            title = self.font.render(name, True, TEXT_COL)
            self.scr.blit(title, title.get_rect(left=rect.left, bottom=rect.top - 2))

    def draw_info_bar(self):
        """Draws the status line and the operating point readout."""
        bar_r = pg.Rect(0, WIN_H - INFO_H, WIN_W, INFO_H)
        pg.draw.rect(self.scr, (28, 30, 32), bar_r)
        pg.draw.line(self.scr, (60, 65, 70), bar_r.topleft, bar_r.topright, max(1, int(SIZE_SCALE)))

        disp_txt, txt_c, cur = self.status, TEXT_COL, ""
        if self.prompt:
            disp_txt = self.prompt + self.input_buffer
            txt_c = ACTIVE_COL
            if int(pg.time.get_ticks()/400) % 2 == 0: cur = "_"
        status_s = self.font.render(disp_txt + cur, True, txt_c)
        self.scr.blit(status_s, (int(15*SIZE_SCALE), bar_r.top + int(6*SIZE_SCALE)))

        if self.wf is None: return
        wf = self.wf
        op = (f"Vo={value_to_str(wf.Vo)}V   Io={value_to_str(wf.Io)}A   "
              f"ΔIL={value_to_str(wf.ripple)}A   IL={value_to_str(wf.il_min)}..{value_to_str(wf.il_max)}A   "
              f"ΔVo={value_to_str(wf.vo_ripple)}V   Ts={value_to_str(wf.Ts)}s")
        op_s = self.font_small.render(op, True, DIM_COL)
        self.scr.blit(op_s, (int(15*SIZE_SCALE), bar_r.top + int(32*SIZE_SCALE)))
        if not math.isfinite(wf.il_min) or not math.isfinite(wf.Vo):
            warn = self.font_small.render("Values overflow: waveforms not drawn", True, WARN_COL)
            self.scr.blit(warn, warn.get_rect(right=WIN_W - PAD, top=bar_r.top + int(32*SIZE_SCALE)))
        elif wf.il_min < 0:
            warn = self.font_small.render("IL < 0: outside CCM, diode blocking not modelled", True, WARN_COL)
            self.scr.blit(warn, warn.get_rect(right=WIN_W - PAD, top=bar_r.top + int(32*SIZE_SCALE)))

    def draw_mini_legend(self):
        """Draws a small, always-visible shortcut list in the corner."""
        lines = ["Wheel: Step", "1-9: Toggle", "R: Reset", "T: Legend"]
        x = WIN_W - PAD
        y = WIN_H - INFO_H + int(6*SIZE_SCALE)
        surf = self.font_tiny.render("   ".join(lines), True, (170, 170, 190))
        self.scr.blit(surf, surf.get_rect(right=x, top=y))

    def draw_legend(self):
        """Draws the full controls overlay."""
        sections = {
            "Mouse": [("Click row",   "Type a new value (SI prefixes: 10u, 300k, 4.7m)"),
                      ("Wheel",       "Step the value under the pointer"),
                      ("Sh+Whl",      "Fine step"),
                      ("Click part",  "Toggle that part's voltage"),
                      ("Ctrl+Click",  "Toggle that part's current"),
                      ("Hover",       "Highlight the nearest trace / legend entry")],
            "Keyboard": [("1-9",          "Toggle waveform"),
                         ("R",            "Reset parameters to defaults"),
                         ("Enter",        "Commit typed value"),
                         ("Esc",          "Cancel / close overlay"),
                         ("T / H / ?",    "Toggle this Legend")],
        }
        pad = int(20*SIZE_SCALE)
        line_h = self.font_small.get_linesize() + int(5*SIZE_SCALE)
        hdr_h = self.font.get_linesize() + int(5*SIZE_SCALE)
        key_w = max(self.font_small.size(k + ":")[0] for items in sections.values() for k, _ in items)
        desc_w = max(self.font_small.size(d)[0] for items in sections.values() for _, d in items)
        leg_w = min(WIN_W - 2*pad, key_w + desc_w + 3*pad)
        leg_h = (hdr_h * (len(sections) + 1) + line_h * sum(len(v) for v in sections.values())
                 + 2*pad)
        leg_r = pg.Rect((WIN_W - leg_w)//2, max(PAD, (WIN_H - leg_h)//2), leg_w, leg_h)

        leg_s = pg.Surface(leg_r.size, pg.SRCALPHA)
        br = int(12*SIZE_SCALE)
        pg.draw.rect(leg_s, (25, 30, 35, 235), leg_s.get_rect(), border_radius=br)
        pg.draw.rect(leg_s, (100, 120, 140, 220), leg_s.get_rect(), max(1, int(2*SIZE_SCALE)), border_radius=br)

        title_s = self.font.render("CONTROLS & REFERENCE", True, (255, 255, 255))
        leg_s.blit(title_s, title_s.get_rect(midtop=(leg_w//2, pad)))
        y = pad + hdr_h
        for sect, items in sections.items():
            leg_s.blit(self.font.render(sect, True, (180, 220, 255)), (pad, y))
            y += hdr_h
            for k, d in items:
                leg_s.blit(self.font_small.render(k + ":", True, ACTIVE_COL), (pad + PAD, y))
                leg_s.blit(self.font_small.render(d, True, (220, 220, 220)), (pad + PAD + key_w + PAD, y))
                y += line_h
        self.scr.blit(leg_s, leg_r)


# ───────── main ─────────
def main():
    try:
        App().run()
    except KeyboardInterrupt:
        print("\nBuck Converter Canvas stopped.")
    finally:
        pg.quit()


if __name__=="__main__":
    main()
