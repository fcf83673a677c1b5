"""Image features for visual similarity.

Each product image is reduced to two cheap features when the listing is
created: the average RGB color and a 64-bit average hash (aHash). The hash is
built by shrinking the image to 8x8 grayscale and setting one bit per pixel
that is brighter than the mean, row by row, most significant bit first.

Extraction is best-effort. An image that cannot be decoded simply has no
features, and the listing is stored without them.
"""

import io
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

import numpy as np
from PIL import Image, UnidentifiedImageError
from pydantic import BaseModel

from src.recommender.models import RGBColor

# Configure module logger
logger = logging.getLogger(__name__)

HASH_SIZE = 8
# Average color is computed on a thumbnail; the mean barely moves
COLOR_SAMPLE_SIZE = (64, 64)

ImageInput = Union[Image.Image, bytes, str, Path]


class ImageFeatures(BaseModel):
    avg_color: RGBColor
    ahash: str

    def to_row(self) -> Dict[str, Any]:
        """Columns of the ``products`` table holding these features."""
        return {
            "image_avg_r": self.avg_color.r,
            "image_avg_g": self.avg_color.g,
            "image_avg_b": self.avg_color.b,
            "image_ahash": self.ahash,
        }


def _open_image(image: ImageInput) -> Image.Image:
    if isinstance(image, Image.Image):
        return image
    if isinstance(image, bytes):
        return Image.open(io.BytesIO(image))
    return Image.open(image)


def average_color(image: Image.Image) -> RGBColor:
    """Mean of each RGB channel, rounded to integers."""
    rgb = image.convert("RGB")
    rgb.thumbnail(COLOR_SAMPLE_SIZE)
    pixels = np.asarray(rgb, dtype=np.float64).reshape(-1, 3)
    r, g, b = np.rint(pixels.mean(axis=0))
    return RGBColor(r=float(r), g=float(g), b=float(b))


def average_hash(image: Image.Image, hash_size: int = HASH_SIZE) -> str:
    """Hex-encoded average hash; 16 characters for the default 8x8 grid."""
    small = image.convert("L").resize((hash_size, hash_size), Image.Resampling.LANCZOS)
    pixels = np.asarray(small, dtype=np.float64)
    bits = (pixels > pixels.mean()).flatten()

    value = 0
    for bit in bits:
        value = (value << 1) | int(bit)
    return f"{value:0{hash_size * hash_size // 4}x}"


def extract_image_features(image: ImageInput) -> Optional[ImageFeatures]:
    """Compute the average color and aHash of an image.

    Args:
        image: A PIL image, raw encoded bytes, or a path to an image file.

    Returns:
        The features, or None when the image cannot be read.
    """
    try:
        opened = _open_image(image)
        opened.load()
        return ImageFeatures(avg_color=average_color(opened), ahash=average_hash(opened))
    except (UnidentifiedImageError, OSError, ValueError) as e:
        logger.warning(
            "Image feature extraction failed",
            extra={"error": str(e), "error_type": type(e).__name__},
        )
        return None
