#!/usr/bin/env python3
"""Convenience runner for the location heatmap tool.

Usage:
    python run.py render --output heatmap.html
"""
import logging
from location_heatmap.main import main

if __name__ == "__main__":
    if not logging.getLogger().hasHandlers():
        logging.basicConfig(level=logging.INFO, format="[%(asctime)s] %(levelname)s %(name)s: %(message)s")
    raise SystemExit(main())
