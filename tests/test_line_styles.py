"""Tests for the KML line style registry."""

from __future__ import annotations

import logging

from strava_export.line_styles import DEFAULT_LINE_STYLES, StyleRegistry


def test_registry_is_seeded_with_defaults() -> None:
    registry = StyleRegistry()
    assert len(registry) == len(DEFAULT_LINE_STYLES)
    ride = registry.lookup("Ride")
    assert (ride.color, ride.width) == ("C00000A0", 4)


def test_unknown_name_falls_back_to_default() -> None:
    registry = StyleRegistry()
    assert registry.lookup("Kayaking").name == "Default"
    assert registry.lookup(None).color == "C00000FF"


def test_valid_override_replaces_and_adds() -> None:
    registry = StyleRegistry({"Ride": {"color": "C03030C0", "width": 2}, "Run": {"color": "FF00FF00", "width": 3}})
    assert registry.lookup("Ride").color == "C03030C0"
    assert registry.lookup("Ride").width == 2
    assert registry.has("Run")
    assert registry.warnings == []


def test_short_color_is_rejected_and_default_kept(caplog) -> None:
    registry = StyleRegistry()
    with caplog.at_level(logging.WARNING, logger="strava_export.line_styles"):
        registry.set_overrides({"Ride": {"color": "12", "width": 2}})
    assert registry.lookup("Ride").color == "C00000A0"
    assert len(registry.warnings) == 1
    assert "Ride" in registry.warnings[0]
    assert "Ignoring line style error" in caplog.text


def test_non_numeric_width_is_rejected() -> None:
    registry = StyleRegistry({"Hike": {"color": "F0FF0000", "width": "wide"}, "Walk": "nope"})
    assert len(registry.warnings) == 2
    assert registry.lookup("Hike").width == 4


def test_registries_do_not_share_state() -> None:
    StyleRegistry({"Ride": {"color": "00000000", "width": 9}})
    assert StyleRegistry().lookup("Ride").color == "C00000A0"
