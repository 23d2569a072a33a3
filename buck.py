#!/usr/bin/env python
# =======================================================================
# buck.py  –  Ideal CCM buck converter waveform synthesizer
# =======================================================================
#
# Turns a parameter set into sampled steady-state waveforms for every
# observable quantity of the converter. Piecewise-linear switching model,
# no parasitics, no start-up transient.
# -----------------------------------------------------------------------
from __future__ import annotations
import math
import numpy as np
from scipy.integrate import cumulative_trapezoid

N_SAMPLES = 1600

D_MIN, D_MAX = 0.05, 0.95
R_MIN = 1e-6
LC_MIN = 1e-12          # smallest inductance / capacitance accepted (H, F)
FSW_MIN = 1.0           # Hz
PERIODS_MIN, PERIODS_MAX = 1, 10

INTEGRATION_SCHEMES = ("rect", "trapezoid")

# Quantity keys, in display order. i_in is the ideal converter's input current.
VOLTAGE_KEYS = ("v_o", "v_sw", "v_l", "v_in")
CURRENT_KEYS = ("i_l", "i_c", "i_d", "i_sw", "i_in")
KEYS = VOLTAGE_KEYS + CURRENT_KEYS


# ───────── PARAMETERS ─────────
class CircuitParameters:
    """Snapshot of the converter parameters, SI units throughout."""
    FIELDS = ("input_voltage", "switching_frequency", "duty_ratio",
              "inductance", "capacitance", "load_resistance", "period_count")

    def __init__(self, input_voltage:float=12.0, switching_frequency:float=300e3,
                 duty_ratio:float=0.5, inductance:float=10e-6, capacitance:float=100e-6,
                 load_resistance:float=5.0, period_count:int=2):
        self.input_voltage = input_voltage
        self.switching_frequency = switching_frequency
        self.duty_ratio = duty_ratio
        self.inductance = inductance
        self.capacitance = capacitance
        self.load_resistance = load_resistance
        self.period_count = period_count

    def replace(self, **changes) -> 'CircuitParameters':
        """Returns a copy with the given fields changed."""
        unknown = set(changes) - set(self.FIELDS)
        if unknown:
            raise KeyError(f"Unknown parameter(s): {', '.join(sorted(unknown))}")
        vals = {f: getattr(self, f) for f in self.FIELDS}
        vals.update(changes)
        return CircuitParameters(**vals)

    def clamped(self) -> 'CircuitParameters':
        """Returns a copy forced into the physically valid ranges."""
        periods = math.floor(float(self.period_count) + 0.5)  # round half up
        return CircuitParameters(
            input_voltage=float(self.input_voltage),
            switching_frequency=max(float(self.switching_frequency), FSW_MIN),
            duty_ratio=min(D_MAX, max(D_MIN, float(self.duty_ratio))),
            inductance=max(float(self.inductance), LC_MIN),
            capacitance=max(float(self.capacitance), LC_MIN),
            load_resistance=max(float(self.load_resistance), R_MIN),
            period_count=max(PERIODS_MIN, min(PERIODS_MAX, periods)),
        )

    def __eq__(self, other):
        if not isinstance(other, CircuitParameters): return NotImplemented
        return all(getattr(self, f) == getattr(other, f) for f in self.FIELDS)

    def __repr__(self):
        inner = ", ".join(f"{f}={getattr(self, f)!r}" for f in self.FIELDS)
        return f"CircuitParameters({inner})"


DEFAULTS = CircuitParameters()


# ───────── WAVEFORM BUNDLE ─────────
class Waveforms:
    """Result of one synthesis call.

    Behaves as a read-only mapping key -> samples; every array has the
    length of ``t``. The operating point used to build the traces is kept
    alongside (``Ts``, ``Vo``, ``Io``, ripple, inductor current extremes).
    """
    def __init__(self, t:np.ndarray, series:dict, params:CircuitParameters, **op):
        self.t = t
        self._series = series
        self.params = params
        self.Ts = op["Ts"]; self.Vo = op["Vo"]; self.Io = op["Io"]
        self.ripple_on = op["ripple_on"]; self.ripple_off = op["ripple_off"]
        self.il_min = op["il_min"]; self.il_max = op["il_max"]

    def __getitem__(self, key:str) -> np.ndarray: return self._series[key]
    def __contains__(self, key): return key in self._series
    def __iter__(self): return iter(self._series)
    def __len__(self): return len(self._series)
    def keys(self): return self._series.keys()
    def items(self): return self._series.items()

    def subset(self, keys) -> dict:
        """Key -> samples for the requested keys, in the requested order."""
        return {k: self._series[k] for k in keys if k in self._series}

    @property
    def ripple(self) -> float:
        """Peak-to-peak inductor current ripple (A)."""
        return self.il_max - self.il_min

    @property
    def vo_ripple(self) -> float:
        """Peak-to-peak output voltage ripple (V)."""
        v = self._series["v_o"]
        return float(v.max() - v.min())


# ───────── SYNTHESIS ─────────
def synthesize(params:CircuitParameters, n_samples:int=N_SAMPLES,
               integration:str="rect") -> Waveforms:
    """Builds the steady-state waveforms for *params* (never mutated).

    Out-of-range inputs are clamped rather than rejected. ``integration``
    picks how the capacitor current is integrated into the output ripple:
    ``"rect"`` is a left running sum, ``"trapezoid"`` uses scipy's
    cumulative trapezoid rule. Either way the ripple is re-centred on the
    ideal output voltage afterwards.
    """
    if integration not in INTEGRATION_SCHEMES:
        raise ValueError(f"Unknown integration scheme '{integration}' "
                         f"(expected one of {', '.join(INTEGRATION_SCHEMES)})")
    if n_samples < 2:
        raise ValueError("Need at least 2 samples")

    p = params.clamped()
    Vi, D = p.input_voltage, p.duty_ratio
    L, C, R = p.inductance, p.capacitance, p.load_resistance
    Ts = 1.0 / p.switching_frequency
    Vo = D * Vi
    Io = Vo / R

    # volt-second balance: ripple_on + ripple_off == 0 in steady state
    ripple_on = (Vi - Vo) / L * (D * Ts)
    ripple_off = (-Vo) / L * ((1 - D) * Ts)
    il_min = Io - ripple_on / 2
    il_max = Io + ripple_on / 2

    window = p.period_count * Ts
    t = np.arange(n_samples) / (n_samples - 1) * window
    ph = np.mod(t, Ts) / Ts
    on = ph < D

    i_l = np.where(on, il_min + ripple_on * (ph / D),
                       il_max + ripple_off * ((ph - D) / (1 - D)))
    v_sw = np.where(on, Vi, 0.0)
    i_sw = np.where(on, i_l, 0.0)
    i_d = np.where(on, 0.0, i_l)
    v_l = v_sw - Vo
    i_c = i_l - Io

    dt = window / (n_samples - 1)
    if integration == "rect":
        vc = np.cumsum(i_c / C * dt)
    else:
        vc = cumulative_trapezoid(i_c / C, dx=dt, initial=0.0)
    v_o = Vo + vc
    v_o += Vo - v_o.mean()

    series = {
        "v_o": v_o, "v_sw": v_sw, "v_l": v_l, "v_in": np.full(n_samples, Vi),
        "i_l": i_l, "i_c": i_c, "i_d": i_d, "i_sw": i_sw, "i_in": i_sw.copy(),
    }
    return Waveforms(t, series, p, Ts=Ts, Vo=Vo, Io=Io, ripple_on=ripple_on,
                     ripple_off=ripple_off, il_min=il_min, il_max=il_max)
