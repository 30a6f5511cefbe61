"""
Pytest configuration and fixtures for Photo Booth Print Compositor tests.

Provides shared fixtures (Flask app and client, generated photos and
logos, temporary directories) and pixel helpers used across the suite.
"""

import io
import shutil
import tempfile
from pathlib import Path
from typing import Tuple

import pytest
import yaml
from PIL import Image

from printbooth import create_app


RED = (255, 0, 0)
GREEN = (0, 255, 0)
BLUE = (0, 0, 255)
YELLOW = (255, 255, 0)
WHITE = (255, 255, 255)
BLACK = (0, 0, 0)
PINK = (255, 182, 193)


def color_close(actual, expected, tolerance: int = 6) -> bool:
    """Compare the RGB part of a pixel within a per-channel tolerance."""
    return all(abs(a - e) <= tolerance for a, e in zip(actual[:3], expected[:3]))


class ImageFactory:
    """Builders for in-memory test images."""

    @staticmethod
    def encode(image: Image.Image, fmt: str = 'PNG', **kwargs) -> bytes:
        buffer = io.BytesIO()
        image.save(buffer, format=fmt, **kwargs)
        return buffer.getvalue()

    @staticmethod
    def solid(size: Tuple[int, int] = (800, 600), color=RED, fmt: str = 'PNG') -> bytes:
        return ImageFactory.encode(Image.new('RGB', size, color), fmt)

    @staticmethod
    def halves(size: Tuple[int, int] = (200, 100), left=RED, right=BLUE) -> Image.Image:
        """Left half one color, right half another."""
        width, height = size
        image = Image.new('RGB', size, right)
        image.paste(left, (0, 0, width // 2, height))
        return image

    @staticmethod
    def with_region(size: Tuple[int, int], box: Tuple[int, int, int, int],
                    inside=RED, outside=GREEN) -> Image.Image:
        image = Image.new('RGB', size, outside)
        image.paste(inside, box)
        return image

    @staticmethod
    def logo(size: Tuple[int, int] = (400, 100), color=BLUE) -> bytes:
        """Opaque RGBA logo."""
        return ImageFactory.encode(Image.new('RGBA', size, color + (255,)), 'PNG')


@pytest.fixture(scope='session')
def images():
    """Provide the ImageFactory class as a fixture."""
    return ImageFactory


@pytest.fixture
def temp_work_dir():
    """Create a temporary work directory for test processing."""
    temp_dir = Path(tempfile.mkdtemp())
    yield temp_dir
    shutil.rmtree(temp_dir, ignore_errors=True)


@pytest.fixture(scope='session')
def assets_dir():
    temp_dir = Path(tempfile.mkdtemp())
    yield temp_dir
    shutil.rmtree(temp_dir, ignore_errors=True)


@pytest.fixture(scope='session')
def events_file(assets_dir):
    """Write an event catalogue with a real logo asset."""
    logo_path = assets_dir / 'logo.png'
    logo_path.write_bytes(ImageFactory.logo((400, 100)))

    events = {
        'events': [
            {
                'slug': 'test-party',
                'name': 'Test Party',
                'logo_path': str(logo_path),
                'photo_area_ratio': 85,
                'logo_settings': {'position': 'bottom-center', 'size': 80},
            },
            {
                'slug': 'strip-only',
                'name': 'Strip Only',
                'logo_path': str(assets_dir / 'missing-logo.png'),
                'photo_area_ratio': 80,
                'background_color': '#FFB6C1',
                'layouts': ['single-with-logo', 'four-cut'],
            },
        ]
    }
    path = assets_dir / 'events.yaml'
    path.write_text(yaml.safe_dump(events), encoding='utf-8')
    return path


@pytest.fixture(scope='session')
def app(events_file, assets_dir):
    """Create and configure a test Flask application."""
    app = create_app({
        'TESTING': True,
        'SECRET_KEY': 'test-key',
        'OUTPUT_FOLDER': str(assets_dir / 'output'),
        'LOG_FILE': str(assets_dir / 'logs' / 'test.log'),
        'EVENTS_FILE': str(events_file),
        'DEBUG': True,
    })

    yield app


@pytest.fixture
def client(app):
    """Create a test client for the Flask application."""
    return app.test_client()
