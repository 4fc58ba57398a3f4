#!/usr/bin/env python3
"""
ZIP Tax Rate Engine - Entry Point

Suggests layered sales tax rates (state, local, category) for a U.S. ZIP
code, flagging which parts are exact and which are estimates.

Usage:
    python main.py lookup 60601
    python main.py lookup 60601 --json
    python main.py batch --file data/store_zips.csv --export-csv rates.csv
    python main.py states --state IL
    python main.py check
"""

from ziptax.cli import main

if __name__ == "__main__":
    main()
