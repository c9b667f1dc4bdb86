#!/usr/bin/env python3
"""
Galley - article compiler and issue archive exporter

Simple usage:
    python run_galley.py render article.md --title "Spring Gala"   # Writes Spring Gala.docx
    python run_galley.py issue ISS-4 -m records.json -u ./uploads  # Writes Volume_N_Issue_M_Export.zip
    python run_galley.py convert ATT-9 -m records.json             # Prints markdown
"""

import sys
from pathlib import Path

# Add src to path for development
src_path = Path(__file__).parent / "src"
if src_path.exists():
    sys.path.insert(0, str(src_path))

from galley.cli import app

if __name__ == "__main__":
    app()
