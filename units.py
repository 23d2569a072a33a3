#!/usr/bin/env python
# =======================================================================
# units.py  –  SI prefix parsing / formatting for typed values & readouts
# =======================================================================
from __future__ import annotations
import math
import re

_SI = {"p":1e-12, "n":1e-9, "u":1e-6, "µ":1e-6, "m":1e-3, "":1.0,
       "k":1e3, "meg":1e6, "M":1e6, "g":1e9, "G":1e9}

_UNIT_RE = re.compile(r"\s*(v|a|hz|f|h|s|ohm|Ω)\s*$", re.IGNORECASE)
_NUM_RE = re.compile(r"([-+]?(?:\d+\.?\d*|\.\d+)(?:e[-+]?\d+)?)\s*(meg|p|n|u|µ|m|k|M|g|G)?$",
                     re.IGNORECASE)


def parse_value(txt:str) -> float|None:
    """Parses a number with optional SI prefix and unit ("10u", "300kHz", "4.7 mF").

    Returns None when the text is not a number. Prefixes are case-sensitive
    for m (milli) / M (mega); "meg" is accepted in any case.
    """
    txt = _UNIT_RE.sub("", txt.strip())
    m = _NUM_RE.match(txt)
    if not m: return None
    prefix = m.group(2) or ""
    if prefix.lower() == "meg": prefix = "meg"
    elif prefix not in _SI: prefix = prefix.lower()
    try: val = float(m.group(1)) * _SI[prefix]
    except (ValueError, KeyError): return None
    return val if math.isfinite(val) else None


def value_to_str(v:float) -> str:
    """Converts a float value to a string with SI prefixes (u, m, k, etc.)."""
    if not math.isfinite(v): return str(v)
    abs_v = abs(v)
    if abs_v < 1e-15: return "0"
    if abs_v >= 1e12: return f"{v:.2e}"

    prefixes = [("G",1e9),("M",1e6),("k",1e3),("",1.0),("m",1e-3),("u",1e-6),("n",1e-9),("p",1e-12)]
    suf, fac = next(((s, f) for s, f in prefixes if abs_v >= f), prefixes[-1])
    sv = v / fac
    if abs(sv) >= 100: fmt = "%.0f"
    elif abs(sv) >= 10: fmt = "%.1f"
    else: fmt = "%.2f"
    str_v = fmt % sv
    # Drop trailing zeros ("5.00" -> "5", "2.50" -> "2.5")
    if '.' in str_v: str_v = str_v.rstrip('0').rstrip('.')
    return f"{str_v}{suf}"
