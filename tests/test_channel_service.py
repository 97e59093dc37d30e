import random

import numpy as np
import pytest

from chromasplit.models.image_model import DERIVED_KINDS, Channel, ChannelKind, PixelBuffer
from chromasplit.services.channel_service import ChannelService
from imaging import random_buffer


@pytest.fixture
def service() -> ChannelService:
    return ChannelService()


def test_extract_returns_four_buffers_of_same_size(service, noisy_buffer):
    derived = service.extract(noisy_buffer)
    assert set(derived) == set(DERIVED_KINDS)
    for buf in derived.values():
        assert buf.size == noisy_buffer.size


def test_red_isolation_keeps_only_red_and_alpha(service, noisy_buffer):
    src = noisy_buffer.array
    red = service.isolate_red(noisy_buffer).array
    assert np.array_equal(red[..., 0], src[..., 0])
    assert not red[..., 1].any()
    assert not red[..., 2].any()
    assert np.array_equal(red[..., 3], src[..., 3])


def test_green_isolation(service, noisy_buffer):
    src = noisy_buffer.array
    green = service.isolate_green(noisy_buffer).array
    assert not green[..., 0].any()
    assert np.array_equal(green[..., 1], src[..., 1])
    assert not green[..., 2].any()
    assert np.array_equal(green[..., 3], src[..., 3])


def test_blue_isolation(service, noisy_buffer):
    src = noisy_buffer.array
    blue = service.isolate_blue(noisy_buffer).array
    assert not blue[..., 0].any()
    assert not blue[..., 1].any()
    assert np.array_equal(blue[..., 2], src[..., 2])
    assert np.array_equal(blue[..., 3], src[..., 3])


@pytest.mark.parametrize(
    "rgba, expected",
    [
        ((10, 20, 30, 200), (20, 20, 20, 200)),
        ((255, 255, 255, 255), (255, 255, 255, 255)),
        ((255, 255, 254, 9), (254, 254, 254, 9)),  # 764 / 3 = 254.67
        ((1, 1, 2, 0), (1, 1, 1, 0)),  # 4 / 3 = 1.33
        ((0, 0, 2, 128), (0, 0, 0, 128)),
    ],
)
def test_grayscale_is_truncated_unweighted_mean(service, rgba, expected):
    buf = PixelBuffer.from_flat(1, 1, list(rgba))
    assert service.to_grayscale(buf).pixel(0, 0) == expected


def test_grayscale_matches_reference_formula(service, noisy_buffer):
    gray = service.to_grayscale(noisy_buffer)
    for y in range(noisy_buffer.height):
        for x in range(noisy_buffer.width):
            r, g, b, a = noisy_buffer.pixel(x, y)
            avg = (r + g + b) // 3
            assert gray.pixel(x, y) == (avg, avg, avg, a)


def test_alpha_passes_through_every_derivation(service, noisy_buffer):
    for kind in ChannelKind:
        out = service.derive(noisy_buffer, kind)
        assert np.array_equal(out.array[..., 3], noisy_buffer.array[..., 3])


def test_derived_buffers_do_not_share_memory(service, noisy_buffer):
    for kind in ChannelKind:
        out = service.derive(noisy_buffer, kind)
        assert not np.shares_memory(out.array, noisy_buffer.array)


def test_original_derivation_is_an_equal_copy(service, noisy_buffer):
    copy = service.derive(noisy_buffer, ChannelKind.ORIGINAL)
    assert copy == noisy_buffer
    assert copy is not noisy_buffer


def test_derivation_order_does_not_matter(service, noisy_buffer):
    snapshot = noisy_buffer.samples
    forward = {kind: service.derive(noisy_buffer, kind) for kind in DERIVED_KINDS}
    shuffled = list(DERIVED_KINDS)
    random.Random(3).shuffle(shuffled)
    backward = {kind: service.derive(noisy_buffer, kind) for kind in reversed(shuffled)}
    assert forward == backward
    assert noisy_buffer.samples == snapshot


def test_histogram_of_uniform_red_image(service):
    buf = PixelBuffer.from_flat(2, 2, [128, 7, 9, 255] * 4)
    hist = service.histogram(buf, Channel.R)
    assert len(hist.bins) == 256
    assert hist.count(128) == 4
    assert sum(c for v, c in enumerate(hist.counts) if v != 128) == 0


@pytest.mark.parametrize("channel", list(Channel))
def test_histogram_counts_sum_to_pixel_count(service, noisy_buffer, channel):
    hist = service.histogram(noisy_buffer, channel)
    assert hist.total == noisy_buffer.width * noisy_buffer.height
    assert [b.value for b in hist.bins] == list(range(256))


def test_histogram_reads_selected_channel(service):
    buf = PixelBuffer.from_flat(1, 1, [1, 2, 3, 4])
    assert service.histogram(buf, Channel.R).count(1) == 1
    assert service.histogram(buf, Channel.G).count(2) == 1
    assert service.histogram(buf, Channel.B).count(3) == 1


def test_histogram_matches_partitioned_counts(service):
    buf = random_buffer(16, 12, seed=7)
    top = PixelBuffer(buf.array[:6])
    bottom = PixelBuffer(buf.array[6:])
    for channel in Channel:
        merged = [
            a + b
            for a, b in zip(service.histogram(top, channel).counts, service.histogram(bottom, channel).counts)
        ]
        assert list(service.histogram(buf, channel).counts) == merged


def test_histograms_cover_rgb(service, noisy_buffer):
    assert set(service.histograms(noisy_buffer)) == {Channel.R, Channel.G, Channel.B}
