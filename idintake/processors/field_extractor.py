"""Heuristic field extraction from recognized ID-card lines.

Every cascade below is an ordered table and the first hit wins, so
precedence can be read (and tested) as data. Extraction never raises:
anything not found is left empty for the applicant to fill in by hand.
"""

import logging
import re
from datetime import date
from typing import Iterable, Optional, Sequence

from idintake.core.constants import (
    ADDRESS_KEYWORDS,
    NAME_BLOCKLIST,
    NAME_MAX_LENGTH,
    NAME_MIN_LENGTH,
)
from idintake.core.dates import calculate_age, parse_birth_date
from idintake.domain.models import DocumentType, ExtractedIdentity

logger = logging.getLogger(__name__)

# Generic keywords such as "ID" are deliberately absent; order is precedence.
DOCUMENT_TYPE_RULES: tuple[tuple[DocumentType, tuple[str, ...]], ...] = (
    (DocumentType.NATIONAL_ID, ("PHILIPPINE IDENTIFICATION", "PHILSYS", "PSN")),
    (DocumentType.DRIVERS_LICENSE, ("DRIVER", "LICENSE", "LTO")),
    (DocumentType.UMID, ("UMID", "UNIFIED MULTI-PURPOSE")),
    (DocumentType.SSS_ID, ("SSS", "SOCIAL SECURITY")),
    (DocumentType.POSTAL_ID, ("POSTAL", "PHILPOST")),
    (DocumentType.VOTERS_ID, ("VOTER", "COMELEC")),
)

BIRTH_DATE_PATTERNS: tuple[tuple[str, re.Pattern], ...] = (
    ("iso", re.compile(r"(\d{4}[-/]\d{2}[-/]\d{2})")),
    ("day_first", re.compile(r"(\d{2}[-/]\d{2}[-/]\d{4})")),
    ("month_name", re.compile(r"([A-Z]+\s+\d{1,2},?\s+\d{4})", re.IGNORECASE)),
)

ID_NUMBER_PATTERNS: tuple[tuple[str, re.Pattern], ...] = (
    ("philsys_crn", re.compile(r"(\d{4}-\d{4}-\d{4}-\d{4})")),
    ("drivers_license", re.compile(r"([A-Z]\d{2}-\d{2}-\d{6})")),
    ("sss", re.compile(r"(\d{2}-\d{7}-\d)")),
    ("long_number", re.compile(r"(\d{10,12})")),
)

NAME_PATTERN = re.compile(r"[A-Za-z\s,.'-]+")


def _first_match(patterns: Iterable[tuple[str, re.Pattern]], text: str) -> str:
    for _label, pattern in patterns:
        match = pattern.search(text)
        if match:
            return match.group(1)
    return ""


def classify_document(text: str) -> DocumentType:
    """Classify from upper-cased card text using ``DOCUMENT_TYPE_RULES``."""
    for document_type, keywords in DOCUMENT_TYPE_RULES:
        if any(keyword in text for keyword in keywords):
            return document_type
    return DocumentType.GOVERNMENT_ID


def extract_full_name(lines: Sequence[str]) -> str:
    for line in lines:
        candidate = line.strip()
        if not NAME_MIN_LENGTH <= len(candidate) <= NAME_MAX_LENGTH:
            continue
        if not NAME_PATTERN.fullmatch(candidate):
            continue
        lowered = candidate.lower()
        if any(word in lowered for word in NAME_BLOCKLIST):
            continue
        return candidate
    return ""


def extract_birth_date(text: str) -> str:
    return _first_match(BIRTH_DATE_PATTERNS, text)


def extract_address(lines: Sequence[str]) -> str:
    """First line naming an address part, plus the next line unless it holds a label."""
    for index, line in enumerate(lines):
        upper = line.upper()
        if not any(keyword in upper for keyword in ADDRESS_KEYWORDS):
            continue
        address = line.strip()
        if index + 1 < len(lines) and ":" not in lines[index + 1]:
            continuation = lines[index + 1].strip()
            if continuation:
                address = f"{address}, {continuation}"
        return address
    return ""


def extract_id_number(text: str) -> str:
    return _first_match(ID_NUMBER_PATTERNS, text)


def derive_age(birth_date: str, today: Optional[date] = None) -> Optional[int]:
    if not birth_date:
        return None
    parsed = parse_birth_date(birth_date)
    if parsed is None:
        logger.debug("Birth date %r not parseable; age left empty", birth_date)
        return None
    return calculate_age(parsed, today)


def extract_identity(lines: Sequence[str], *, today: Optional[date] = None) -> ExtractedIdentity:
    """Project recognized lines onto an ``ExtractedIdentity``.

    Args:
        lines: Recognized lines in reading order
        today: Reference date for age derivation (defaults to today)

    Returns:
        A complete record; missing fields are empty strings and ``age`` is None.
    """
    clean_lines = ["" if line is None else str(line) for line in lines]
    text = " ".join(clean_lines).upper()

    birth_date = extract_birth_date(text)
    identity = ExtractedIdentity(
        full_name=extract_full_name(clean_lines),
        birth_date=birth_date,
        address_text=extract_address(clean_lines),
        document_type=classify_document(text),
        id_number=extract_id_number(text),
        age=derive_age(birth_date, today),
    )

    logger.info(
        "Identity fields extracted",
        extra={
            "line_count": len(clean_lines),
            "document_type": identity.document_type.value,
        },
    )
    return identity
