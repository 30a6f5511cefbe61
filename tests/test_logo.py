"""
Unit tests for logo settings, scaling and placement.
"""

import pytest
from PIL import Image

from printbooth.layout import SlotRect
from printbooth.logo import (
    LogoAnchor, LogoSettings, DEFAULT_LOGO_SETTINGS,
    load_logo_bytes, decode_logo, scale_logo, resolve_logo_position, render_logo
)
from tests.conftest import ImageFactory


LOGO_REGION = SlotRect(0, 1275, 1000, 225)


class TestLogoAnchor:

    @pytest.mark.parametrize('value,expected', [
        ('bottom-center', LogoAnchor.BOTTOM_CENTER),
        ('Top Left', LogoAnchor.TOP_LEFT),
        ('center_right', LogoAnchor.CENTER_RIGHT),
        ('middle', LogoAnchor.CENTER),
        ('center-center', LogoAnchor.CENTER),
        ('custom', LogoAnchor.CUSTOM),
    ])
    def test_parse(self, value, expected):
        assert LogoAnchor.parse(value) is expected

    def test_parse_unknown_raises(self):
        with pytest.raises(ValueError):
            LogoAnchor.parse('upside-down')

    def test_axes(self):
        assert LogoAnchor.BOTTOM_RIGHT.vertical == 'bottom'
        assert LogoAnchor.BOTTOM_RIGHT.horizontal == 'right'
        assert LogoAnchor.CENTER.vertical == 'center'
        assert LogoAnchor.CENTER.horizontal == 'center'


class TestLogoSettings:

    def test_defaults(self):
        assert DEFAULT_LOGO_SETTINGS.anchor == LogoAnchor.BOTTOM_CENTER
        assert DEFAULT_LOGO_SETTINGS.size_percent == 80

    def test_wire_names(self):
        settings = LogoSettings.from_config({'position': 'top-left', 'size': 50})

        assert settings.anchor == LogoAnchor.TOP_LEFT
        assert settings.size_percent == 50

    def test_custom_position(self):
        settings = LogoSettings.from_config({'position': 'custom', 'size': 30, 'x': 25, 'y': 60})

        assert settings.anchor == LogoAnchor.CUSTOM
        assert (settings.custom_x, settings.custom_y) == (25, 60)
        assert settings.to_dict() == {'position': 'custom', 'size': 30, 'x': 25, 'y': 60}

    def test_custom_without_coordinates_falls_back(self):
        settings = LogoSettings.from_config({'position': 'custom', 'size': 30, 'x': 25})

        assert settings.anchor == LogoAnchor.BOTTOM_CENTER
        assert settings.size_percent == 30

    @pytest.mark.parametrize('data', [
        {'position': 'upside-down'},
        {'size': 0},
        {'size': 'huge'},
        {'size': 500},
        {'position': 'custom', 'x': float('nan'), 'y': 50},
        {'position': 'custom', 'x': 50, 'y': float('inf')},
    ])
    def test_invalid_settings_use_defaults(self, data):
        assert LogoSettings.from_config(data) == DEFAULT_LOGO_SETTINGS

    def test_empty_settings_use_defaults(self):
        assert LogoSettings.from_config(None) == DEFAULT_LOGO_SETTINGS
        assert LogoSettings.from_config({}) == DEFAULT_LOGO_SETTINGS


class TestLogoLoading:

    def test_load_existing_file(self, temp_work_dir):
        path = temp_work_dir / 'logo.png'
        path.write_bytes(ImageFactory.logo())

        assert load_logo_bytes(path) == path.read_bytes()

    def test_load_missing_file(self, temp_work_dir):
        assert load_logo_bytes(temp_work_dir / 'nope.png') is None
        assert load_logo_bytes(None) is None

    def test_decode(self):
        logo = decode_logo(ImageFactory.logo((40, 10)))

        assert logo.mode == 'RGBA'
        assert logo.size == (40, 10)

    def test_decode_unreadable_is_none(self):
        assert decode_logo(b'not a png') is None
        assert decode_logo(None) is None

    def test_scale_keeps_aspect_and_enlarges(self):
        logo = Image.new('RGBA', (200, 50))

        assert scale_logo(logo, 800).size == (800, 200)
        assert scale_logo(logo, 100).size == (100, 25)


class TestLogoPosition:

    @pytest.mark.parametrize('anchor,expected', [
        ('top-left', (20, 1295)),
        ('top-center', (100, 1295)),
        ('top-right', (180, 1295)),
        ('center-left', (20, 1338)),
        ('center', (100, 1338)),
        ('center-right', (180, 1338)),
        ('bottom-left', (20, 1380)),
        ('bottom-center', (100, 1380)),
        ('bottom-right', (180, 1380)),
    ])
    def test_presets(self, anchor, expected):
        settings = LogoSettings(anchor=anchor)

        assert resolve_logo_position((800, 100), settings, LOGO_REGION) == expected

    def test_custom_is_center_point(self):
        settings = LogoSettings(anchor='custom', custom_x=50, custom_y=50)

        assert resolve_logo_position((800, 100), settings, LOGO_REGION) == (100, 1338)

    def test_custom_may_reach_into_photo_region(self):
        settings = LogoSettings(anchor='custom', custom_x=50, custom_y=-500)

        assert resolve_logo_position((800, 100), settings, LOGO_REGION) == (100, 100)

    @pytest.mark.parametrize('x,y,expected', [
        (200, 50, (1000, 1338)),
        (-100, 50, (-800, 1338)),
        (50, -1000, (100, 0)),
        (50, 1000, (100, 1500)),
    ])
    def test_custom_is_clamped_to_canvas(self, x, y, expected):
        settings = LogoSettings(anchor='custom', custom_x=x, custom_y=y)

        assert resolve_logo_position((800, 100), settings, LOGO_REGION) == expected

    def test_horizontal_reference_starts_at_region_left(self):
        strip = SlotRect(505, 20, 475, 1460)
        settings = LogoSettings(anchor='bottom-center')

        left, top = resolve_logo_position((380, 100), settings, strip, reference_width=475)

        assert left == 505 + 48
        assert top == 1480 - 100 - 20


class TestRenderLogo:

    def test_size_and_position(self):
        tile = render_logo(ImageFactory.logo((200, 50)), DEFAULT_LOGO_SETTINGS, LOGO_REGION)

        assert tile.size == (800, 200)
        assert tile.origin == (100, 1280)

    def test_size_percent_of_reference_width(self):
        settings = LogoSettings(size_percent=50)

        tile = render_logo(ImageFactory.logo((200, 50)), settings, SlotRect(20, 20, 475, 1460),
                           reference_width=475)

        assert tile.size == (238, 60)

    def test_unreadable_logo_is_none(self):
        assert render_logo(b'junk', DEFAULT_LOGO_SETTINGS, LOGO_REGION) is None
