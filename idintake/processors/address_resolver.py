"""Cascading province -> city -> barangay resolution against the PSGC reference.

Each level's query is scoped by the code resolved one level up. A miss or a
failed query at any level leaves that slot None and never aborts the others;
barangay lookup additionally requires a resolved city and is never run
unscoped.
"""

import logging
import re
from typing import Optional

from idintake.core.constants import ZIP_CODE_MAX, ZIP_CODE_MIN
from idintake.domain.models import (
    AddressInput,
    AddressResolutionResult,
    City,
    GeoLevel,
    GeoReferenceEntry,
    ResolvedCity,
    ResolvedPlace,
)
from idintake.domain.ports import RankingStrategy, ReferenceStore
from idintake.processors.ranking import FirstResultRanking

logger = logging.getLogger(__name__)

ZIP_CODE_PATTERNS: tuple[re.Pattern, ...] = (
    re.compile(r"\b(\d{4})\s*(?:philippines?|ph)?$", re.IGNORECASE),
    re.compile(r"\bzip\s*:?\s*(\d{4})\b", re.IGNORECASE),
    re.compile(r"\bpostal\s*(?:code)?:?\s*(\d{4})\b", re.IGNORECASE),
    re.compile(r"\b(\d{4})\s*(?:city|municipality|brgy|barangay)", re.IGNORECASE),
    re.compile(r"(?:city|municipality|brgy|barangay)[^0-9]*(\d{4})\b", re.IGNORECASE),
)


def extract_zip_code(text: Optional[str]) -> Optional[str]:
    """Find a Philippine ZIP code (4 digits, 1000-9999) in free address text."""
    if not text:
        return None
    cleaned = text.strip()
    for pattern in ZIP_CODE_PATTERNS:
        match = pattern.search(cleaned)
        if match and ZIP_CODE_MIN <= int(match.group(1)) <= ZIP_CODE_MAX:
            return match.group(1)
    return None


def _clean(value: Optional[str]) -> str:
    return value.strip() if value else ""


class AddressResolver:
    """Resolves free-text place names to canonical PSGC codes.

    Args:
        store: Reference hierarchy to query
        ranking: Picks one entry per query; defaults to the store's first result
    """

    def __init__(self, store: ReferenceStore, ranking: Optional[RankingStrategy] = None):
        self.store = store
        self.ranking = ranking or FirstResultRanking()

    async def resolve(self, address: AddressInput) -> AddressResolutionResult:
        province: Optional[ResolvedPlace] = None
        city: Optional[ResolvedCity] = None
        barangay: Optional[ResolvedPlace] = None

        province_text = _clean(address.province)
        if province_text:
            entry = await self._lookup(GeoLevel.PROVINCE, province_text)
            if entry is not None:
                province = ResolvedPlace(code=entry.code, name=entry.name)

        city_text = _clean(address.city)
        if city_text:
            entry = await self._lookup(
                GeoLevel.CITY, city_text, province.code if province else None
            )
            if entry is not None:
                zip_code = entry.zip_code if isinstance(entry, City) else None
                city = ResolvedCity(code=entry.code, name=entry.name, zip_code=zip_code or "")

        barangay_text = _clean(address.barangay)
        if barangay_text and city is not None:
            entry = await self._lookup(GeoLevel.BARANGAY, barangay_text, city.code)
            if entry is not None:
                barangay = ResolvedPlace(code=entry.code, name=entry.name)
        elif barangay_text:
            logger.debug(
                "Barangay lookup skipped without a resolved city",
                extra={"geo_level": GeoLevel.BARANGAY.value, "query": barangay_text},
            )

        result = AddressResolutionResult(
            province=province,
            city=city,
            barangay=barangay,
            extracted_zip_code=extract_zip_code(address.raw_address),
        )
        logger.info(
            "Address resolved: province=%s city=%s barangay=%s",
            province.code if province else None,
            city.code if city else None,
            barangay.code if barangay else None,
        )
        return result

    async def _lookup(
        self, level: GeoLevel, text: str, parent_code: Optional[str] = None
    ) -> Optional[GeoReferenceEntry]:
        extra = {"geo_level": level.value, "query": text, "parent_code": parent_code}
        try:
            candidates = await self.store.search(level, text, parent_code)
            return self.ranking.pick(text, candidates)
        except Exception:
            # A failed level is a miss; deeper levels decide for themselves.
            logger.warning("Reference lookup failed; treating as no match", extra=extra, exc_info=True)
            return None
