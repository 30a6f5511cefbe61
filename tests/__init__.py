"""
Test suite for Photo Booth Print Compositor.

This package contains unit tests for the geometry, crop, photo, logo and
compositing modules, plus integration tests for the render pipeline and
the Flask endpoints.
"""

import sys
from pathlib import Path

# Add the project root to the Python path for imports
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))
