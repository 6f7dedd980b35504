#!/usr/bin/env python3
"""Convenience runner for the GPS route simulator.

Usage:
    python run.py simulate --route-file route.json --webhook-url https://example.test/hook
"""
import sys

from gps_simulator.main import main

if __name__ == "__main__":
    sys.exit(main())
