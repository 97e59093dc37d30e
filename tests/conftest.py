import pytest

from chromasplit.models.image_model import PixelBuffer
from imaging import random_buffer


@pytest.fixture
def noisy_buffer() -> PixelBuffer:
    return random_buffer(13, 9, seed=42)
