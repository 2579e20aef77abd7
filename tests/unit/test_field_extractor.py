"""Unit tests for ID-card field extraction heuristics."""

from datetime import date

import pytest

from idintake.domain.models import DocumentType
from idintake.processors.field_extractor import (
    classify_document,
    derive_age,
    extract_address,
    extract_full_name,
    extract_id_number,
    extract_identity,
)


class TestEmptyInput:
    def test_no_lines_gives_empty_identity(self):
        identity = extract_identity([])

        assert identity.full_name == ""
        assert identity.birth_date == ""
        assert identity.address_text == ""
        assert identity.id_number == ""
        assert identity.age is None
        assert identity.document_type == DocumentType.GOVERNMENT_ID
        assert identity.document_type.value == "Government ID"


class TestDocumentType:
    def test_drivers_license_outranks_sss(self):
        assert classify_document("SSS DRIVER LICENSE") == DocumentType.DRIVERS_LICENSE

    def test_national_id_outranks_everything(self):
        text = "PHILIPPINE IDENTIFICATION CARD LTO SSS COMELEC"
        assert classify_document(text) == DocumentType.NATIONAL_ID

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("UNIFIED MULTI-PURPOSE ID", DocumentType.UMID),
            ("SOCIAL SECURITY SYSTEM", DocumentType.SSS_ID),
            ("PHILPOST", DocumentType.POSTAL_ID),
            ("COMELEC", DocumentType.VOTERS_ID),
            ("COMPANY ID", DocumentType.GOVERNMENT_ID),
        ],
    )
    def test_keyword_table(self, text, expected):
        assert classify_document(text) == expected

    def test_classification_is_case_insensitive_via_extract(self):
        identity = extract_identity(["land transportation office", "driver's license"])
        assert identity.document_type == DocumentType.DRIVERS_LICENSE


class TestFullName:
    def test_skips_header_lines(self):
        lines = [
            "REPUBLIC OF THE PHILIPPINES",
            "PHILIPPINE IDENTIFICATION CARD",
            "DELA CRUZ, JUAN SANTOS",
        ]
        assert extract_full_name(lines) == "DELA CRUZ, JUAN SANTOS"

    def test_rejects_lines_with_digits_or_bad_length(self):
        lines = ["JUAN", "ID NO 1234", "X" * 50, "Maria Clara"]
        assert extract_full_name(lines) == "Maria Clara"

    def test_length_bounds_are_inclusive(self):
        assert extract_full_name(["ABCDEF"]) == "ABCDEF"
        assert extract_full_name(["A" * 49]) == "A" * 49
        assert extract_full_name(["ABCDE"]) == ""


class TestAddress:
    def test_continuation_with_label_is_not_joined(self):
        lines = ["RANDOM TEXT", "123 BRGY SAMPLE", "NEXT: details"]
        assert extract_address(lines) == "123 BRGY SAMPLE"

    def test_continuation_is_joined(self):
        lines = ["ADDRESS", "PUROK 3 BRGY ATLU-BOLA", "MABALACAT CITY, PAMPANGA"]
        assert extract_address(lines) == "PUROK 3 BRGY ATLU-BOLA, MABALACAT CITY, PAMPANGA"

    def test_last_line_has_no_continuation(self):
        assert extract_address(["NAME", "BARANGAY DAU"]) == "BARANGAY DAU"

    def test_no_keyword_no_address(self):
        assert extract_address(["JUAN DELA CRUZ", "1990-06-15"]) == ""


class TestIdNumber:
    @pytest.mark.parametrize(
        "text,expected",
        [
            ("PCN 1234-5678-9012-3456", "1234-5678-9012-3456"),
            ("LICENSE NO N01-12-345678", "N01-12-345678"),
            ("SS NO 34-1234567-8", "34-1234567-8"),
            ("CRN 012345678901", "012345678901"),
        ],
    )
    def test_patterns(self, text, expected):
        assert extract_id_number(text) == expected

    def test_first_pattern_in_table_wins(self):
        assert extract_id_number("0123456789 1234-5678-9012-3456") == "1234-5678-9012-3456"


class TestAge:
    def test_day_before_birthday(self):
        assert derive_age("1990-06-15", date(2024, 6, 14)) == 33

    def test_on_birthday(self):
        assert derive_age("1990-06-15", date(2024, 6, 15)) == 34

    def test_month_name_date(self):
        assert derive_age("JUNE 15, 1990", date(2024, 6, 15)) == 34

    def test_unparseable_or_missing(self):
        assert derive_age("", date(2024, 1, 1)) is None
        assert derive_age("99/99/9999", date(2024, 1, 1)) is None


class TestExtractIdentity:
    def test_national_id_card(self):
        lines = [
            "REPUBLIC OF THE PHILIPPINES",
            "PHILIPPINE IDENTIFICATION CARD",
            "1234-5678-9012-3456",
            "DELA CRUZ, JUAN SANTOS",
            "Date of Birth",
            "1990-06-15",
            "Address",
            "123 RIZAL STREET, BRGY ATLU-BOLA",
            "MABALACAT CITY, PAMPANGA 2010",
        ]
        identity = extract_identity(lines, today=date(2024, 6, 15))

        assert identity.document_type == DocumentType.NATIONAL_ID
        assert identity.full_name == "DELA CRUZ, JUAN SANTOS"
        assert identity.birth_date == "1990-06-15"
        assert identity.age == 34
        assert identity.id_number == "1234-5678-9012-3456"
        assert identity.address_text == (
            "123 RIZAL STREET, BRGY ATLU-BOLA, MABALACAT CITY, PAMPANGA 2010"
        )

    def test_drivers_license_card(self):
        lines = [
            "LAND TRANSPORTATION OFFICE",
            "DRIVER'S LICENSE",
            "SANTOS, MARIA CLARA",
            "1985/03/02",
            "N01-12-345678",
        ]
        identity = extract_identity(lines, today=date(2024, 3, 1))

        assert identity.document_type == DocumentType.DRIVERS_LICENSE
        assert identity.birth_date == "1985/03/02"
        assert identity.age == 38
        assert identity.id_number == "N01-12-345678"

    def test_none_entries_are_tolerated(self):
        identity = extract_identity([None, "SOCIAL SECURITY SYSTEM"])
        assert identity.document_type == DocumentType.SSS_ID

    def test_result_is_immutable(self):
        identity = extract_identity(["JUAN DELA CRUZ"])
        with pytest.raises(Exception):
            identity.full_name = "changed"
