"""General utility helpers shared across modules."""

from __future__ import annotations

import html
import math
import re


def js_round(value: float) -> int:
    """Round half up, matching the rounding the bikelog form was built with."""

    return int(math.floor(value + 0.5))


def round_to(value: float, factor: int) -> float:
    """Round ``value`` half up to ``1/factor`` resolution."""

    return js_round(value * factor) / factor


def format_number(value: float) -> str:
    """Render a number without a trailing ``.0`` for whole values."""

    if float(value).is_integer():
        return str(int(value))
    return repr(float(value))


def format_hm(seconds: int) -> str:
    """Format seconds as ``H:MM`` with unpadded hours."""

    total = int(seconds or 0)
    hours, rem = divmod(total, 3600)
    return f"{hours}:{rem // 60:02d}"


def format_ms(seconds: int) -> str:
    """Format seconds as ``M:SS`` where minutes may exceed 59."""

    mins, sec = divmod(int(seconds or 0), 60)
    return f"{mins}:{sec:02d}"


def format_hms(seconds: int) -> str:
    total = int(seconds or 0)
    hours, rem = divmod(total, 3600)
    mins, sec = divmod(rem, 60)
    return f"{hours}:{mins:02d}:{sec:02d}"


def escape_html(unsafe: str) -> str:
    """Escape markup characters (including quotes) in free text."""

    return html.escape(unsafe or "", quote=True)


def field_capitalize(name: str) -> str:
    """``total_elevation_gain`` -> ``Total Elevation Gain``."""

    result = re.sub(r"^([a-z])", lambda m: m.group(1).upper(), name)
    return re.sub(r"_([a-z])", lambda m: " " + m.group(1).upper(), result)


def get_distance_string(metres: float, imperial: bool = False) -> str:
    if imperial:
        return f"{format_number(round_to(metres / 1609.344, 100))} miles"
    return f"{format_number(round_to(metres / 1000, 100))} km"


def get_elevation_string(metres: float, imperial: bool = False) -> str:
    if imperial:
        return f"{js_round(metres / 0.3048)} ft"
    return f"{js_round(metres)} m"


def get_temperature_string(celsius: float, imperial: bool = False) -> str:
    if imperial:
        return f"{js_round(celsius * 9 / 5 + 32)}&deg;F"
    return f"{js_round(celsius)}&deg;C"
