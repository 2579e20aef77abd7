import base64
from datetime import date

import pytest

from idintake.core.dates import calculate_age, parse_birth_date
from idintake.core.exceptions import InvalidImageError, PayloadTooLargeError
from idintake.utils.payload import decode_image_payload

JPEG = b"\xff\xd8\xff\xe0fake-jpeg"


class TestDecodeImagePayload:
    def test_plain_base64(self):
        assert decode_image_payload(base64.b64encode(JPEG).decode()) == JPEG

    def test_data_uri_prefix_is_stripped(self):
        payload = "data:image/jpeg;base64," + base64.b64encode(JPEG).decode()
        assert decode_image_payload(payload) == JPEG

    def test_wrapped_lines_are_accepted(self):
        encoded = base64.b64encode(JPEG).decode()
        assert decode_image_payload(encoded[:8] + "\n" + encoded[8:]) == JPEG

    @pytest.mark.parametrize("payload", ["", "   ", "not base64!!", "data:image/png;base64,"])
    def test_invalid(self, payload):
        with pytest.raises(InvalidImageError):
            decode_image_payload(payload)

    def test_too_large(self):
        payload = base64.b64encode(b"x" * (1024 * 1024 + 1)).decode()
        with pytest.raises(PayloadTooLargeError):
            decode_image_payload(payload, max_size_mb=1)


class TestBirthDates:
    @pytest.mark.parametrize(
        "value,expected",
        [
            ("1990-06-15", date(1990, 6, 15)),
            ("1990/06/15", date(1990, 6, 15)),
            ("06/15/1990", date(1990, 6, 15)),
            ("15/06/1990", date(1990, 6, 15)),
            ("JUNE 15, 1990", date(1990, 6, 15)),
            ("Jun 15 1990", date(1990, 6, 15)),
        ],
    )
    def test_formats(self, value, expected):
        assert parse_birth_date(value) == expected

    def test_ambiguous_numeric_is_month_first(self):
        assert parse_birth_date("03/04/1990") == date(1990, 3, 4)

    @pytest.mark.parametrize("value", ["", "13/13/1990", None, 19900615])
    def test_unparseable(self, value):
        assert parse_birth_date(value) is None

    def test_age_counts_whole_years(self):
        assert calculate_age(date(2000, 2, 29), date(2024, 2, 28)) == 23
        assert calculate_age(date(2000, 2, 29), date(2024, 2, 29)) == 24
