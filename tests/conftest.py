"""
Pytest configuration and fixtures for Joinguard tests.
"""

import os
import sys
import tempfile
from pathlib import Path

# Keep test log files out of the project tree
os.environ.setdefault("JOINGUARD_LOG_DIR", str(Path(tempfile.gettempdir()) / "joinguard-test-logs"))

# Add src directory to path so imports work
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))
