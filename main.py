#!/usr/bin/env python3
"""
t-writer - run from a source checkout without installing.

Usage:
    python main.py "Hello, world."
    python main.py "Page one\\Page two" --loop
    python main.py "Hello, world." --headless

See ``twriter --help`` for every option.
"""
import sys
from pathlib import Path

# Add src to Python path
sys.path.insert(0, str(Path(__file__).parent / "src"))

from twriter.main import main  # noqa: E402

if __name__ == "__main__":
    main()
