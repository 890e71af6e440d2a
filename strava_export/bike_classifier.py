"""Map Strava bike names onto the short codes printed on the bikelog form."""

from __future__ import annotations

import logging
import re
from typing import Iterable, List, Mapping, Sequence, Tuple

from .models import BikeRule

LOGGER = logging.getLogger(__name__)

# Ordered: a more specific pattern must come before one that would shadow it.
DEFAULT_BIKE_RULES: Tuple[Tuple[str, str], ...] = (
    (r"serott", "S1"),
    (r"spec", "SP1"),
    (r"MTB1", "MTB1"),
    (r"MTB2", "MTB2"),
    (r"T1", "T1"),
    (r"tallboy", "TB29"),
    (r"orbea", "ORB29"),
)

_MOTO = re.compile(r"^moto$", re.IGNORECASE)


class BikeClassifier:
    """First-match-wins classifier over an ordered rule list.

    User-configured rules (plain, case-insensitive substrings) are evaluated
    before the built-in fallback patterns.
    """

    def __init__(
        self,
        rules: Sequence[BikeRule] | None = None,
        *,
        include_defaults: bool = True,
    ) -> None:
        compiled: List[Tuple[re.Pattern[str], str]] = []
        for rule in rules or ():
            compiled.append((re.compile(re.escape(rule.pattern), re.IGNORECASE), rule.code))
        if include_defaults:
            for pattern, code in DEFAULT_BIKE_RULES:
                compiled.append((re.compile(pattern, re.IGNORECASE), code))
        self._rules = compiled

    @classmethod
    def from_config(cls, entries: Iterable[Mapping[str, str]]) -> "BikeClassifier":
        """Build from ``[{"name": "S1", "pattern": "Serotta"}, ...]`` entries."""

        rules: List[BikeRule] = []
        for entry in entries:
            pattern = entry.get("pattern")
            code = entry.get("name")
            if not pattern or not code:
                LOGGER.warning("Ignoring bike rule without pattern/name: %s", entry)
                continue
            rules.append(BikeRule(pattern=str(pattern), code=str(code)))
        return cls(rules)

    def classify(self, name: str | None) -> str | None:
        """Return the code of the first matching rule, or ``None``."""

        if not name:
            return None
        for pattern, code in self._rules:
            if pattern.search(name):
                return code
        return None

    @staticmethod
    def is_moto(name: str | None) -> bool:
        return bool(name) and bool(_MOTO.match(name))
