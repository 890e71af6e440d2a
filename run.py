#!/usr/bin/env python3
"""Convenience runner for the Strava KML / bikelog exporter.

Usage:
    python run.py --activities acts.json --athlete athlete.json --kml --bikelog
"""
import sys

from strava_export.main import main

if __name__ == "__main__":
    sys.exit(main())
