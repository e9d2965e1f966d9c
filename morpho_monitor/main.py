#!/usr/bin/env python3
"""
Morpho Monitor
Entry point for ``python -m morpho_monitor.main``
"""
from .cli import main

if __name__ == "__main__":
    main()
