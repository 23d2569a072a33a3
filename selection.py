#!/usr/bin/env python
# =======================================================================
# selection.py  –  Which waveforms are shown, their labels and axis ranges
# =======================================================================
from __future__ import annotations
import numpy as np

from buck import KEYS, VOLTAGE_KEYS, CURRENT_KEYS
from plotter import colour_of

LABELS = {
    "v_o": "v_o (V)", "v_sw": "v_sw (V)", "v_l": "v_L (V)", "v_in": "v_in (V)",
    "i_l": "i_L (A)", "i_c": "i_C (A)", "i_d": "i_D (A)", "i_sw": "i_S (A)", "i_in": "i_in (A)",
}

DEFAULT_KEYS = ("v_o", "v_sw", "i_l", "i_c")

# Schematic probe points: component -> (voltage key, current key).
# Plain click probes the voltage, Ctrl/Cmd-click the current.
PROBES = {
    "Vin": ("v_in", "i_in"),
    "S":   ("v_sw", "i_sw"),
    "D":   ("v_sw", "i_d"),
    "L":   ("v_l",  "i_l"),
    "C":   ("v_o",  "i_c"),
    "R":   ("v_o",  None),      # load current is the constant Io, not a trace
}

PAD = 1.1


class Selection:
    """Ordered set of waveform keys; insertion order is drawing order."""
    def __init__(self, keys=()):
        self._keys:list[str] = []
        for k in keys: self.add(k)

    @staticmethod
    def _check(key:str):
        if key not in KEYS: raise KeyError(f"Unknown waveform '{key}'")

    def add(self, key:str) -> bool:
        """Adds *key*; False if it was already selected."""
        self._check(key)
        if key in self._keys: return False
        self._keys.append(key)
        return True

    def remove(self, key:str):
        self._check(key)
        if key not in self._keys: raise KeyError(f"'{key}' is not selected")
        self._keys.remove(key)

    def toggle(self, key:str) -> bool:
        """Flips *key*, returns whether it is selected afterwards."""
        self._check(key)
        if key in self._keys:
            self._keys.remove(key); return False
        self._keys.append(key); return True

    def clear(self): self._keys.clear()

    def voltages(self) -> list[str]: return [k for k in self._keys if k in VOLTAGE_KEYS]
    def currents(self) -> list[str]: return [k for k in self._keys if k in CURRENT_KEYS]

    def __contains__(self, key): return key in self._keys
    def __iter__(self): return iter(list(self._keys))
    def __len__(self): return len(self._keys)
    def __repr__(self): return f"Selection({self._keys!r})"


def probe_key(component:str, current:bool=False) -> str|None:
    """Waveform key for a schematic probe click, None if the probe has none."""
    v_key, i_key = PROBES[component]
    return i_key if current else v_key


def legend(sel:Selection, colours:dict|None=None) -> list[tuple[str, str, tuple]]:
    """(key, label, colour) for every selected key, voltages first."""
    return [(k, LABELS[k], colour_of(k, colours)) for k in sel.voltages() + sel.currents()]


def _extent(series:dict):
    arrs = [np.asarray(a, dtype=float) for a in series.values() if a is not None]
    if not arrs: return None
    vals = np.concatenate(arrs)
    if vals.size == 0: return None
    return float(vals.min()), float(vals.max())


def _valid(lo, hi): return np.isfinite(lo) and np.isfinite(hi) and hi > lo


def voltage_bounds(series:dict, input_voltage:float) -> tuple[float, float]:
    """Value range for the voltage plot; always includes 0 and the input voltage."""
    ext = _extent(series)
    if ext is None:
        lo, hi = 0.0, PAD * input_voltage
    else:
        lo, hi = min(ext[0], 0.0) * PAD, max(ext[1], input_voltage) * PAD
    if not _valid(lo, hi): lo, hi = 0.0, max(1.0, input_voltage)
    return lo, hi


def current_bounds(series:dict) -> tuple[float, float]:
    """Value range for the current plot; always covers at least ±1 A."""
    ext = _extent(series)
    if ext is None: return -1.0, 1.0
    lo, hi = min(ext[0], -1.0) * PAD, max(ext[1], 1.0) * PAD
    if not _valid(lo, hi): lo, hi = -1.0, 1.0
    return lo, hi
