"""Tests for round image cropping and pixelation."""

import io
import random

from PIL import Image

from utils.image_processing import OUTPUT_SIZE, crop_random_square, pixelate, transform_image


def _png(width: int, height: int, color=(200, 30, 30)) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", (width, height), color).save(buffer, format="PNG")
    return buffer.getvalue()


def _gradient(width: int, height: int) -> Image.Image:
    image = Image.new("RGB", (width, height))
    image.putdata([(x % 256, y % 256, (x * y) % 256) for y in range(height) for x in range(width)])
    return image


class TestPixelate:
    def test_keeps_size_and_blocks_colours(self):
        image = _gradient(40, 40)

        result = pixelate(image, 10)

        assert result.size == (40, 40)
        # Every pixel in a 10x10 block shares one colour
        assert len({result.getpixel((x, y)) for x in range(10) for y in range(10)}) == 1


class TestCrop:
    def test_crop_is_square_and_resized(self):
        result = crop_random_square(_gradient(120, 80), 4.0, random.Random(3))
        assert result.size == (OUTPUT_SIZE, OUTPUT_SIZE)


class TestTransformImage:
    def test_splash_returns_png(self):
        data = transform_image(_png(1215, 717), "splash", "easy", rng=random.Random(1))

        image = Image.open(io.BytesIO(data))
        assert image.format == "PNG"
        assert image.size == (OUTPUT_SIZE, OUTPUT_SIZE)

    def test_ability_without_pixelation_is_untouched(self):
        assert transform_image(_png(64, 64), "ability", "normal") is None

    def test_ability_pixelated_keeps_icon_size(self):
        data = transform_image(_png(64, 64), "ability", "v3", pixelated=True)
        assert Image.open(io.BytesIO(data)).size == (64, 64)

    def test_undecodable_bytes(self):
        assert transform_image(b"not an image", "skin", "hard") is None
