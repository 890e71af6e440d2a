"""Tests for grouping segments into country/state regions."""

from __future__ import annotations

from strava_export.regions import UNKNOWN_COUNTRY, group_regions


def test_group_regions_builds_country_state_tree(regional_segments) -> None:
    regions = group_regions(regional_segments)
    assert regions == {
        "United States": {"California"},
        "France": {"Isère"},
        UNKNOWN_COUNTRY: set(),
    }
    assert list(regions) == ["United States", "France", UNKNOWN_COUNTRY]


def test_group_regions_is_idempotent(regional_segments) -> None:
    assert group_regions(regional_segments) == group_regions(regional_segments)


def test_state_without_country_lands_in_unknown_bucket() -> None:
    from conftest import make_segment

    regions = group_regions([make_segment("Loop", state="Somewhere")])
    assert regions == {UNKNOWN_COUNTRY: {"Somewhere"}}


def test_empty_input() -> None:
    assert group_regions([]) == {}
