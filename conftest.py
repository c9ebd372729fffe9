"""
Pytest configuration file for typing-rain tests.
"""

import os
import sys
from pathlib import Path

# Render off-screen during tests
os.environ.setdefault("SDL_VIDEODRIVER", "dummy")
os.environ.setdefault("SDL_AUDIODRIVER", "dummy")

# Make the package importable without installing it
sys.path.insert(0, str(Path(__file__).parent))
