"""Pytest configuration.

Ensures that the repository root is importable so that ``focusai`` can be
resolved when the tests run from a checkout without ``pip install -e .``.
"""

import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))
