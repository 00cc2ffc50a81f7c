#!/usr/bin/env python3
"""
KEYHUNTER - API Key Exposure Scanner

Entry point for running the CLI from a source checkout.

Usage:
    python main.py search --key-type openai
    python main.py validate --input results/openai/detected_keys_20250101_120000.json
    python main.py report --dry-run
"""

import sys
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent / "src"))

from keyhunter.cli import cli


if __name__ == '__main__':
    cli()
