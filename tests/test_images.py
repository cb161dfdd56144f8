"""Tests for image normalization."""

import base64
import io

import pytest
from PIL import Image

from calorie_coach.services.images import (
    ImageDecodeError,
    decode_image_payload,
    normalize_image,
    parse_data_url,
)
from tests.conftest import make_image_bytes


def _decoded_size(data: str) -> tuple[int, int]:
    with Image.open(io.BytesIO(base64.b64decode(data))) as image:
        assert image.format == "JPEG"
        return image.size


def test_large_image_is_downscaled_preserving_aspect_ratio() -> None:
    result = normalize_image(make_image_bytes(2048, 1024))

    assert (result.width, result.height) == (1024, 512)
    assert _decoded_size(result.data) == (1024, 512)
    assert result.media_type == "image/jpeg"


def test_portrait_image_uses_height_as_longer_edge() -> None:
    result = normalize_image(make_image_bytes(600, 1800), max_edge=900)

    assert (result.width, result.height) == (300, 900)


def test_small_image_keeps_dimensions() -> None:
    result = normalize_image(make_image_bytes(320, 240, image_format="JPEG"))

    assert (result.width, result.height) == (320, 240)
    assert result.data_url.startswith("data:image/jpeg;base64,")


def test_transparent_image_is_flattened_to_jpeg() -> None:
    result = normalize_image(make_image_bytes(64, 64, mode="RGBA"))

    assert _decoded_size(result.data) == (64, 64)


def test_undecodable_bytes_raise_decode_error() -> None:
    with pytest.raises(ImageDecodeError):
        normalize_image(b"definitely not an image")


def test_decode_payload_accepts_data_url_and_bare_base64() -> None:
    raw = make_image_bytes(10, 10)
    encoded = base64.b64encode(raw).decode()

    assert decode_image_payload(f"data:image/png;base64,{encoded}") == raw
    assert decode_image_payload(encoded) == raw


def test_decode_payload_ignores_line_breaks() -> None:
    raw = make_image_bytes(10, 10)
    encoded = base64.b64encode(raw).decode()
    wrapped = "\r\n".join(encoded[i : i + 16] for i in range(0, len(encoded), 16))

    assert "\n" in wrapped
    assert decode_image_payload(f"data:image/png;base64,{wrapped}\n") == raw
    assert decode_image_payload(base64.encodebytes(raw).decode()) == raw


def test_decode_payload_rejects_invalid_base64() -> None:
    with pytest.raises(ImageDecodeError):
        decode_image_payload("***not-base64***")


def test_parse_data_url_defaults_to_jpeg() -> None:
    assert parse_data_url("data:image/webp;base64,AAAA") == ("image/webp", "AAAA")
    assert parse_data_url("AAAA") == ("image/jpeg", "AAAA")
