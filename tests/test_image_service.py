import numpy as np
import pytest
from PIL import Image

from chromasplit.models.errors import DecodeError
from chromasplit.services.image_service import ImageService
from imaging import image_bytes, random_buffer, solid_png


@pytest.fixture
def service() -> ImageService:
    return ImageService()


def test_decode_rgb_png_gets_opaque_alpha(service):
    buf = service.decode(solid_png((10, 20, 30, 255), size=(3, 2), mode="RGB"))
    assert buf.size == (3, 2)
    assert buf.pixel(2, 1) == (10, 20, 30, 255)


def test_decode_keeps_alpha(service):
    buf = service.decode(solid_png((200, 100, 50, 17), size=(2, 2)))
    assert buf.pixel(0, 0) == (200, 100, 50, 17)


def test_decode_palette_transparency(service):
    img = Image.new("P", (2, 1))
    img.putpalette([0, 0, 0, 255, 0, 0] + [0, 0, 0] * 254)
    img.putpixel((0, 0), 0)
    img.putpixel((1, 0), 1)
    buf = service.decode(image_bytes(img, transparency=0))
    assert buf.pixel(0, 0)[3] == 0
    assert buf.pixel(1, 0) == (255, 0, 0, 255)


def test_decode_jpeg(service):
    buf = service.decode(image_bytes(Image.new("RGB", (8, 4), (128, 128, 128)), fmt="JPEG"))
    assert buf.size == (8, 4)
    assert buf.pixel(0, 0)[3] == 255


def test_decode_webp(service):
    source = random_buffer(6, 5, seed=3)
    buf = service.decode(image_bytes(source.to_pil(), fmt="WEBP", lossless=True))
    assert buf.size == (6, 5)
    assert np.array_equal(buf.array[..., 3], source.array[..., 3])


def test_decode_grayscale_source(service):
    buf = service.decode(image_bytes(Image.new("L", (1, 1), 77)))
    assert buf.pixel(0, 0) == (77, 77, 77, 255)


@pytest.mark.parametrize(
    "payload",
    [b"", b"definitely not an image"],
)
def test_decode_rejects_non_images(service, payload):
    with pytest.raises(DecodeError):
        service.decode(payload)


def test_decode_rejects_truncated_image(service):
    data = image_bytes(random_buffer(64, 64, seed=1).to_pil())
    with pytest.raises(DecodeError):
        service.decode(data[: len(data) // 2])


def test_decode_error_is_value_error():
    assert issubclass(DecodeError, ValueError)


def test_encode_produces_png(service):
    encoded = service.encode(random_buffer())
    assert encoded.mime_type == "image/png"
    assert encoded.data.startswith(b"\x89PNG\r\n\x1a\n")
    assert encoded.data_uri.startswith("data:image/png;base64,")


def test_encode_is_lossless(service):
    buf = random_buffer(31, 17, seed=5)
    assert service.decode(service.encode(buf).data) == buf


def test_decode_encode_loop_is_idempotent(service):
    original = image_bytes(random_buffer(9, 9, seed=11).to_pil())
    first = service.decode(original)
    second = service.decode(service.encode(first).data)
    assert second == first
    assert np.array_equal(second.array, first.array)


def test_read_file_collects_metadata(service, tmp_path):
    path = tmp_path / "photo.png"
    path.write_bytes(solid_png((1, 2, 3, 255), size=(5, 4), mode="RGB"))
    info = service.read_file(path)
    assert (info.width, info.height) == (5, 4)
    assert info.source_format == "PNG"
    assert info.source_mode == "RGB"
    assert info.size_bytes == path.stat().st_size
    assert info.content == path.read_bytes()


def test_read_file_missing(service, tmp_path):
    with pytest.raises(FileNotFoundError):
        service.read_file(tmp_path / "nope.png")


def test_read_file_not_an_image(service, tmp_path):
    path = tmp_path / "notes.txt"
    path.write_text("hello", encoding="utf-8")
    with pytest.raises(DecodeError):
        service.read_file(path)
