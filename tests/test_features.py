"""Tests for image feature extraction."""

import io

import pytest
from PIL import Image

from src.recommender.features import (
    average_color,
    average_hash,
    extract_image_features,
)
from src.recommender.similarity import hash_similarity


@pytest.fixture
def top_half_white():
    """An 8x8 grayscale image: four white rows over four black rows."""
    image = Image.new("L", (8, 8), 0)
    for x in range(8):
        for y in range(4):
            image.putpixel((x, y), 255)
    return image


@pytest.fixture
def left_half_white():
    image = Image.new("L", (8, 8), 0)
    for x in range(4):
        for y in range(8):
            image.putpixel((x, y), 255)
    return image


def test_average_color_of_solid_image():
    """Test that a solid image averages to its own color."""
    color = average_color(Image.new("RGB", (40, 30), (200, 100, 50)))

    assert (color.r, color.g, color.b) == (200, 100, 50)


def test_average_color_converts_grayscale():
    """Test that non-RGB images are converted first."""
    color = average_color(Image.new("L", (10, 10), 90))

    assert (color.r, color.g, color.b) == (90, 90, 90)


def test_average_hash_of_uniform_image_is_zero():
    """Test that no pixel is brighter than the mean of a flat image."""
    assert average_hash(Image.new("RGB", (16, 16), (120, 120, 120))) == "0" * 16


def test_average_hash_bits_are_row_major(top_half_white, left_half_white):
    """Test the bit layout of the hash."""
    assert average_hash(top_half_white) == "ffffffff00000000"
    assert average_hash(left_half_white) == "f0f0f0f0f0f0f0f0"


def test_average_hash_is_sixteen_hex_characters(top_half_white):
    """Test the encoded hash length."""
    ahash = average_hash(top_half_white.resize((64, 64)))

    assert len(ahash) == 16
    int(ahash, 16)


def test_similar_images_have_similar_hashes(top_half_white):
    """Test that a resized copy keeps a near-identical hash."""
    original = average_hash(top_half_white)
    resized = average_hash(top_half_white.resize((128, 128), Image.Resampling.NEAREST))

    assert hash_similarity(original, resized) >= 0.9


def test_extract_features_from_bytes():
    """Test extraction from encoded image bytes."""
    buffer = io.BytesIO()
    Image.new("RGB", (20, 20), (10, 200, 30)).save(buffer, format="PNG")

    features = extract_image_features(buffer.getvalue())

    assert features is not None
    assert (features.avg_color.r, features.avg_color.g, features.avg_color.b) == (10, 200, 30)
    assert features.ahash == "0" * 16


def test_extract_features_from_path(tmp_path, top_half_white):
    """Test extraction from an image file."""
    path = tmp_path / "product.png"
    top_half_white.convert("RGB").save(path)

    features = extract_image_features(path)

    assert features.ahash == "ffffffff00000000"
    assert features.to_row() == {
        "image_avg_r": features.avg_color.r,
        "image_avg_g": features.avg_color.g,
        "image_avg_b": features.avg_color.b,
        "image_ahash": "ffffffff00000000",
    }


def test_extract_features_failure_returns_none(tmp_path):
    """Test that unreadable images yield no features instead of an error."""
    assert extract_image_features(b"definitely not an image") is None
    assert extract_image_features(tmp_path / "missing.png") is None
