"""Ambient sky colors for the current time of day.

A fixed table of color stops spans the day; the color pair for any
instant is the per-channel linear blend of the two stops around it.
"""

from __future__ import annotations

import math
from datetime import datetime

from routine.models import ColorStop


SKY_STOPS: tuple[ColorStop, ...] = (
    ColorStop(0, "#05091a", "#0b122e"),      # midnight
    ColorStop(270, "#0a1440", "#1b2655"),    # 04:30 pre-dawn
    ColorStop(345, "#2b2d6e", "#ff7e5f"),    # 05:45 sunrise
    ColorStop(480, "#87ceeb", "#f0f8ff"),    # 08:00 morning sky
    ColorStop(750, "#57b0ff", "#cfefff"),    # 12:30 bright noon
    ColorStop(990, "#79b4ff", "#ffe8b3"),    # 16:30 late afternoon
    ColorStop(1110, "#ff9966", "#55286f"),   # 18:30 sunset
    ColorStop(1200, "#1b1f3b", "#0e1433"),   # 20:00 blue hour
    ColorStop(1320, "#090c1a", "#0b122e"),   # 22:00 night
    ColorStop(1440, "#05091a", "#0b122e"),   # wrap 24:00
)


def hex_to_rgb(h: str) -> tuple[int, int, int]:
    s = h.lstrip("#")
    return int(s[0:2], 16), int(s[2:4], 16), int(s[4:6], 16)


def rgb_to_hex(r: int, g: int, b: int) -> str:
    return "#" + "".join(f"{max(0, min(255, c)):02x}" for c in (r, g, b))


def mix_hex(a: str, b: str, t: float) -> str:
    """Blend two hex colors channel by channel at fraction t."""
    ca, cb = hex_to_rgb(a), hex_to_rgb(b)
    mixed = [math.floor(x + (y - x) * t + 0.5) for x, y in zip(ca, cb)]
    return rgb_to_hex(*mixed)


def minute_of_day(now: datetime) -> float:
    """Minutes since local midnight, seconds included as a fraction."""
    return now.hour * 60 + now.minute + (now.second + now.microsecond / 1e6) / 60


def colors_at(now: datetime, stops: tuple[ColorStop, ...] = SKY_STOPS) -> tuple[str, str]:
    """Return the (top, bottom) sky colors for a wall-clock instant."""
    m = minute_of_day(now)
    prev, nxt = stops[-2], stops[-1]
    for i in range(1, len(stops)):
        if m < stops[i].minute:
            prev, nxt = stops[i - 1], stops[i]
            break

    span = nxt.minute - prev.minute
    t = 0.0 if span <= 0 else min(1.0, max(0.0, (m - prev.minute) / span))
    return mix_hex(prev.top, nxt.top, t), mix_hex(prev.bottom, nxt.bottom, t)


def gradient_css(top: str, bottom: str) -> str:
    return f"linear-gradient(to bottom, {top}, {bottom})"
