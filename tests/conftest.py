"""Test configuration for pytest."""

import logging
import os
from pathlib import Path

import numpy as np
import pytest
from PIL import Image

from photolot.grouping.hash import from_bits

PHOTO_WIDTH = 90
PHOTO_HEIGHT = 80

COLORS = {
    "red": (1.0, 0.3, 0.3),
    "blue": (0.3, 0.5, 1.0),
    "green": (0.3, 1.0, 0.3),
}


@pytest.fixture(autouse=True)
def configure_test_logging():
    """Configure logging for tests to be minimal."""
    os.environ['PHOTOLOT_LOG_LEVEL'] = 'WARNING'
    logging.getLogger().setLevel(logging.WARNING)


def column_profile(pattern: str, offset: int = 0) -> np.ndarray:
    """Intensity per image column; each 10px band becomes one hash column."""
    x = np.arange(PHOTO_WIDTH)
    if pattern == "descending":
        values = 218 - 2 * x
    elif pattern == "ascending":
        values = 40 + 2 * x
    elif pattern == "valley":
        values = 40 + 4 * np.abs(x - 45)
    else:
        raise ValueError(pattern)
    return values + offset


def write_photo(path: Path, color: str, pattern: str, offset: int = 0) -> str:
    profile = column_profile(pattern, offset)
    weights = np.array(COLORS[color])
    row = (profile[:, None] * weights[None, :]).clip(0, 255).astype(np.uint8)
    pixels = np.repeat(row[None, :, :], PHOTO_HEIGHT, axis=0)
    Image.fromarray(pixels).save(path)
    return str(path)


@pytest.fixture
def make_photo(tmp_path):
    """Factory writing a synthetic PNG photo and returning its path."""
    def _make(name: str, color: str = "red", pattern: str = "descending", offset: int = 0) -> str:
        return write_photo(tmp_path / name, color, pattern, offset)
    return _make


@pytest.fixture
def red_blue_photos(make_photo):
    """Three shots of a red item followed by two shots of a blue item."""
    reds = [make_photo(f"red-item-{i}.png", "red", "descending", offset=5 * i) for i in range(3)]
    blues = [make_photo(f"blue-item-{i}.png", "blue", "ascending", offset=5 * i) for i in range(2)]
    return reds + blues


@pytest.fixture
def green_photo(make_photo):
    return make_photo("green-item-0.png", "green", "valley")


def fingerprint_from_int(value: int, bits: int = 64):
    """Fingerprint whose row-major bits spell ``value`` in binary."""
    return from_bits(format(value, f"0{bits}b"))


def flipped(bits: str, positions) -> str:
    chars = list(bits)
    for pos in positions:
        chars[pos] = "1" if chars[pos] == "0" else "0"
    return "".join(chars)
