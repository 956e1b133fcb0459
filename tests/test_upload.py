"""Tests for data URL upload decoding."""

import base64

import pytest

from modserve.exceptions import ValidationError
from modserve.storage import parse_data_url


class TestParseDataURL:
    def test_base64_payload(self):
        payload = base64.b64encode(b"\x89PNG\r\n").decode()
        upload = parse_data_url(f"data:image/png;base64,{payload}")

        assert upload.content == b"\x89PNG\r\n"
        assert upload.media_type == "image/png"

    def test_percent_encoded_payload(self):
        upload = parse_data_url("data:text/plain,hello%20world")
        assert upload.content == b"hello world"
        assert upload.media_type == "text/plain"

    def test_default_media_type(self):
        upload = parse_data_url("data:,abc")
        assert upload.media_type.startswith("text/plain")

    def test_parameters_are_kept_for_the_store_to_normalize(self):
        upload = parse_data_url("data:text/plain;charset=utf-8;base64,YWJj")
        assert upload.content == b"abc"
        assert upload.media_type == "text/plain;charset=utf-8"

    @pytest.mark.parametrize(
        "value",
        [None, "", "image/png;base64,AAAA", "data:image/png;base64", "data:image/png;base64,!!!"],
    )
    def test_invalid_values(self, value):
        with pytest.raises(ValidationError):
            parse_data_url(value)
