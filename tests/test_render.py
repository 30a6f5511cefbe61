"""
Unit tests for photo decoding, orientation and slot fitting.
"""

import io

import pytest
from PIL import Image

from printbooth.crop import CropRect
from printbooth.errors import DecodeFailureError
from printbooth.render import (
    FitMode, decode_image, normalize_rotation, orient, to_rgb,
    render_photo, render_photo_bytes
)
from tests.conftest import ImageFactory, RED, BLUE, WHITE, color_close


class TestDecodeImage:

    def test_decodes_png(self):
        image = decode_image(ImageFactory.solid((40, 30)))

        assert image.size == (40, 30)

    @pytest.mark.parametrize('data', [b'', b'definitely not an image', b'\x89PNG\r\n\x1a\n\x00'])
    def test_unreadable_data_raises(self, data):
        with pytest.raises(DecodeFailureError) as exc_info:
            decode_image(data, 'photo 2')

        assert exc_info.value.details['source'] == 'photo 2'
        assert exc_info.value.http_status == 400

    def test_truncated_jpeg_raises(self):
        noise = Image.effect_noise((400, 400), 64).convert('RGB')
        data = ImageFactory.encode(noise, 'JPEG', quality=95)

        with pytest.raises(DecodeFailureError):
            decode_image(data[:len(data) // 2])


class TestRotation:

    @pytest.mark.parametrize('value,expected', [
        (None, 0),
        (0, 0),
        (90, 90),
        (180, 180),
        (270, 270),
        (360, 0),
        (450, 90),
        (-90, 270),
        ('180', 180),
        (100, 90),
        ('sideways', 0),
        (45, 90),
        (135, 180),
        (-45, 0),
        (float('inf'), 0),
        (float('-inf'), 0),
        (float('nan'), 0),
        ('Infinity', 0),
    ])
    def test_normalize_rotation(self, value, expected):
        assert normalize_rotation(value) == expected

    def test_rotation_is_clockwise(self):
        image = ImageFactory.halves((200, 100), left=RED, right=BLUE)

        rotated = orient(image, 90)

        assert rotated.size == (100, 200)
        assert rotated.getpixel((50, 25)) == RED
        assert rotated.getpixel((50, 175)) == BLUE

    def test_rotation_270(self):
        image = ImageFactory.halves((200, 100), left=RED, right=BLUE)

        rotated = orient(image, 270)

        assert rotated.getpixel((50, 175)) == RED
        assert rotated.getpixel((50, 25)) == BLUE

    def test_exif_orientation_applied_before_rotation(self):
        image = ImageFactory.halves((200, 100), left=RED, right=BLUE)
        exif = Image.Exif()
        exif[0x0112] = 6
        buffer = io.BytesIO()
        image.save(buffer, format='JPEG', quality=95, exif=exif)

        oriented = orient(decode_image(buffer.getvalue()))

        assert oriented.size == (100, 200)
        assert color_close(oriented.getpixel((50, 25)), RED, tolerance=30)

        turned_back = orient(decode_image(buffer.getvalue()), 270)
        assert turned_back.size == (200, 100)
        assert color_close(turned_back.getpixel((25, 50)), RED, tolerance=30)


class TestToRgb:

    def test_transparent_pixels_become_white(self):
        image = Image.new('RGBA', (10, 10), (255, 0, 0, 0))

        assert to_rgb(image).getpixel((5, 5)) == WHITE

    def test_opaque_pixels_survive(self):
        image = Image.new('RGBA', (10, 10), (255, 0, 0, 255))

        assert to_rgb(image).getpixel((5, 5)) == RED

    def test_grayscale_converts(self):
        image = Image.new('L', (10, 10), 128)

        assert to_rgb(image).mode == 'RGB'


class TestRenderPhoto:

    def test_cover_fit_keeps_center(self):
        image = ImageFactory.halves((200, 100), left=RED, right=BLUE)

        tile = render_photo(image, (100, 100))

        assert tile.size == (100, 100)
        assert tile.fit_mode == FitMode.COVER
        assert not tile.crop.has_valid_crop
        assert color_close(tile.image.getpixel((10, 50)), RED)
        assert color_close(tile.image.getpixel((90, 50)), BLUE)

    def test_valid_crop_fills_exactly(self):
        image = ImageFactory.halves((200, 100), left=RED, right=BLUE)

        tile = render_photo(image, (100, 100), crop=CropRect(0, 0, 100, 100))

        assert tile.fit_mode == FitMode.EXACT_FILL
        assert tile.crop.rect == CropRect(0, 0, 100, 100)
        assert color_close(tile.image.getpixel((10, 50)), RED)
        assert color_close(tile.image.getpixel((90, 50)), RED)

    def test_exact_fill_stretches_mismatched_crop(self):
        image = ImageFactory.halves((200, 100), left=RED, right=BLUE)

        tile = render_photo(image, (300, 100), crop=CropRect(0, 0, 100, 100))

        assert tile.size == (300, 100)
        assert tile.fit_mode == FitMode.EXACT_FILL
        assert color_close(tile.image.getpixel((290, 50)), RED)

    def test_invalid_crop_falls_back_to_cover(self):
        image = ImageFactory.halves((200, 100), left=RED, right=BLUE)

        tile = render_photo(image, (100, 100), crop=CropRect(0, 0, 0, 100))

        assert tile.fit_mode == FitMode.COVER
        assert color_close(tile.image.getpixel((90, 50)), BLUE)

    def test_crop_applies_to_rotated_image(self):
        image = ImageFactory.halves((200, 100), left=RED, right=BLUE)

        # After a clockwise quarter turn the red half is on top
        tile = render_photo(image, (50, 50), crop=CropRect(0, 0, 100, 100), rotation=90)

        assert tile.fit_mode == FitMode.EXACT_FILL
        assert color_close(tile.image.getpixel((25, 45)), RED)

    def test_rgba_photo_is_flattened(self):
        image = Image.new('RGBA', (100, 100), (0, 0, 0, 0))

        tile = render_photo(image, (50, 50))

        assert tile.image.mode == 'RGB'
        assert tile.image.getpixel((25, 25)) == WHITE

    def test_render_photo_bytes_reports_index(self):
        with pytest.raises(DecodeFailureError) as exc_info:
            render_photo_bytes(b'garbage', (100, 100), index=2)

        assert exc_info.value.details['source'] == 'photo 3'
