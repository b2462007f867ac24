"""
Tests for report photo intake
"""
import base64
import pytest

from civiclens.classification.image_intake import (
    IntakeImage,
    normalize_location,
    parse_image,
    strip_data_url_prefix,
)
from civiclens.core.exceptions import ImageValidationError, InputError


class TestParseImage:
    """Test suite for parse_image."""

    def test_data_url(self, sample_image, sample_image_b64):
        intake = parse_image(sample_image)

        assert intake.mime_type == "image/jpeg"
        assert intake.base64_data == sample_image_b64
        assert intake.data_url == sample_image
        assert intake.raw_bytes == base64.b64decode(sample_image_b64)

    def test_bare_base64_defaults_to_jpeg(self, sample_image_b64):
        intake = parse_image(sample_image_b64)

        assert intake.mime_type == "image/jpeg"
        assert intake.data_url == f"data:image/jpeg;base64,{sample_image_b64}"

    def test_png_data_url(self, sample_image_b64):
        intake = parse_image(f"data:image/PNG;base64,{sample_image_b64}")

        assert intake.mime_type == "image/png"
        assert intake.extension == "png"

    def test_whitespace_in_payload_removed(self, sample_image_b64):
        wrapped = "\n".join(sample_image_b64[i:i + 8] for i in range(0, len(sample_image_b64), 8))

        intake = parse_image(f"data:image/jpeg;base64,{wrapped}\n")

        assert intake.base64_data == sample_image_b64

    @pytest.mark.parametrize("image", [None, "", "  \n ", "data:image/jpeg;base64,", 42])
    def test_missing_image(self, image):
        with pytest.raises(ImageValidationError) as exc_info:
            parse_image(image)

        assert exc_info.value.status_code == 400
        assert exc_info.value.message == "Image is required"

    def test_invalid_base64(self):
        with pytest.raises(ImageValidationError):
            parse_image("data:image/jpeg;base64,not*base64!")

    def test_image_error_is_input_error(self):
        with pytest.raises(InputError):
            parse_image(None)


class TestIntakeImage:
    """Test the IntakeImage helpers."""

    @pytest.mark.parametrize("mime,ext", [
        ("image/jpeg", "jpg"),
        ("image/jpg", "jpg"),
        ("image/png", "png"),
        ("image/webp", "webp"),
    ])
    def test_extension(self, mime, ext):
        assert IntakeImage(base64_data="AAAA", mime_type=mime).extension == ext

    def test_strip_prefix_with_parameters(self):
        mime, payload = strip_data_url_prefix("data:image/jpeg;name=photo.jpg;base64,AAAA")

        assert mime == "image/jpeg"
        assert payload == "AAAA"

    def test_strip_prefix_without_mime(self):
        mime, payload = strip_data_url_prefix("data:;base64,AAAA")

        assert mime == "image/jpeg"
        assert payload == "AAAA"


class TestNormalizeLocation:

    def test_trims(self):
        assert normalize_location("  5th Ave & Main St ") == "5th Ave & Main St"

    def test_blank_is_none(self):
        assert normalize_location("   ") is None
        assert normalize_location("") is None
        assert normalize_location(None) is None

    def test_case_preserved(self):
        assert normalize_location("main st") == "main st"
