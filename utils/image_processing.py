"""Image cropping and pixelation for round artwork."""

import io
import logging
import random
from typing import Optional

from PIL import Image, UnidentifiedImageError

logger = logging.getLogger(__name__)

OUTPUT_SIZE = 400

# How far splash and skin art is zoomed in before cropping
ZOOM_LEVELS = {"easy": 2.5, "normal": 4.0, "hard": 6.0}
DEFAULT_ZOOM = 4.0

# Pixel block sizes for the pixelated variants
ART_PIXEL_SIZES = {"easy": 10, "normal": 14, "hard": 18}
ABILITY_PIXEL_SIZES = {"easy": 8, "normal": 12, "hard": 16, "v2": 12, "v3": 12}
DEFAULT_ART_PIXEL_SIZE = 14
DEFAULT_ABILITY_PIXEL_SIZE = 12


def pixelate(image: Image.Image, pixel_size: int) -> Image.Image:
    """Pixelate an image by shrinking it and scaling it back up without smoothing."""
    width, height = image.size
    small = image.resize(
        (max(1, -(-width // pixel_size)), max(1, -(-height // pixel_size))),
        resample=Image.Resampling.NEAREST,
    )
    return small.resize((width, height), resample=Image.Resampling.NEAREST)


def crop_random_square(image: Image.Image, zoom: float, rng: random.Random) -> Image.Image:
    """Cut a random square out of the image, sized by the zoom level."""
    crop_size = min(image.width, image.height) / zoom
    max_x = max(0.0, image.width - crop_size)
    max_y = max(0.0, image.height - crop_size)
    left = int(rng.random() * max_x)
    top = int(rng.random() * max_y)
    box = (left, top, int(left + crop_size), int(top + crop_size))
    return image.crop(box).resize((OUTPUT_SIZE, OUTPUT_SIZE), resample=Image.Resampling.BILINEAR)


def _to_png(image: Image.Image) -> bytes:
    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()


def transform_image(
    data: bytes,
    mode: str,
    difficulty: str,
    pixelated: bool = False,
    rng: Optional[random.Random] = None,
) -> Optional[bytes]:
    """Produce the PNG shown for a round.

    Splash and skin art is always cropped (and optionally pixelated). Ability
    icons are only re-encoded when pixelated; otherwise None is returned and
    the original URL is displayed as-is.
    """
    rng = rng or random.Random()

    if mode == "ability" and not pixelated:
        return None

    try:
        image = Image.open(io.BytesIO(data)).convert("RGBA")
    except (UnidentifiedImageError, OSError) as e:
        logger.warning(f"Could not decode image for {mode} round: {e}")
        return None

    if mode in ("splash", "skin"):
        image = crop_random_square(image, ZOOM_LEVELS.get(difficulty, DEFAULT_ZOOM), rng)
        if pixelated:
            image = pixelate(image, ART_PIXEL_SIZES.get(difficulty, DEFAULT_ART_PIXEL_SIZE))
        return _to_png(image)

    if mode == "ability":
        image = pixelate(image, ABILITY_PIXEL_SIZES.get(difficulty, DEFAULT_ABILITY_PIXEL_SIZE))
        return _to_png(image)

    return None
