"""KML line styles keyed by activity type.

Colors are ``AABBGGRR`` hex strings as KML expects them.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Dict, Iterator, List, Mapping

from .models import LineStyle

LOGGER = logging.getLogger(__name__)

DEFAULT_STYLE = "Default"
MOTO_STYLE = "Moto"
COMMUTE_STYLE = "Commute"
SEGMENT_STYLE = "Segment"

DEFAULT_LINE_STYLES: Mapping[str, tuple[str, int]] = {
    DEFAULT_STYLE: ("C00000FF", 4),
    "Ride": ("C00000A0", 4),
    "EBikeRide": ("7FFF00FF", 4),
    MOTO_STYLE: ("6414F03C", 4),
    SEGMENT_STYLE: ("C0FFFFFF", 6),
    COMMUTE_STYLE: ("C085037D", 4),
    "Hike": ("F0FF0000", 4),
    "Walk": ("F0f08000", 4),
    "Stand Up Paddling": ("F0f08000", 4),
    "Nordic Ski": ("F0f08000", 4),
}

_COLOR = re.compile(r"^[a-zA-Z0-9]{8}$")


class StyleRegistry:
    """Per-export mapping of style name to :class:`LineStyle`.

    Seeded from :data:`DEFAULT_LINE_STYLES`; overrides may replace or add
    entries but never remove one.
    """

    def __init__(self, overrides: Mapping[str, Any] | None = None) -> None:
        self._styles: Dict[str, LineStyle] = {
            name: LineStyle(name=name, color=color, width=width)
            for name, (color, width) in DEFAULT_LINE_STYLES.items()
        }
        self.warnings: List[str] = []
        if overrides:
            self.set_overrides(overrides)

    def set_overrides(self, styles: Mapping[str, Any]) -> None:
        """Apply ``{"Ride": {"color": "C03030C0", "width": 2}, ...}``.

        Invalid entries are skipped with a warning; the prior binding stays.
        """

        for name, style in styles.items():
            color = style.get("color") if isinstance(style, Mapping) else None
            width = style.get("width") if isinstance(style, Mapping) else None
            if (
                isinstance(color, str)
                and _COLOR.match(color)
                and isinstance(width, (int, float))
                and not isinstance(width, bool)
            ):
                self._styles[name] = LineStyle(name=name, color=color, width=int(width))
                continue
            message = (
                f"Ignoring line style error for {name}. Style must be in form "
                '\'{ "color": "C03030C0", "width": 2 }\''
            )
            self.warnings.append(message)
            LOGGER.warning(message)

    def has(self, name: str) -> bool:
        return name in self._styles

    def lookup(self, name: str | None) -> LineStyle:
        if name and name in self._styles:
            return self._styles[name]
        return self._styles[DEFAULT_STYLE]

    def __iter__(self) -> Iterator[LineStyle]:
        return iter(self._styles.values())

    def __len__(self) -> int:
        return len(self._styles)
