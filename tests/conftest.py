"""
pytest configuration for wspr_tracker tests
"""

import sys
from pathlib import Path

# Adjust path to import the package without installing it
src_path = str(Path(__file__).parent.parent / 'src')
if src_path not in sys.path:
    sys.path.insert(0, src_path)
