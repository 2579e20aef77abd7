"""Address picker lookups and free-text address matching."""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from idintake.api.schemas import (
    BarangayListResponse,
    CityListResponse,
    ProblemDetail,
    ProvinceListResponse,
)
from idintake.core.dependencies import get_intake_service
from idintake.domain.models import AddressInput, AddressResolutionResult, GeoLevel
from idintake.services.intake import IntakeService

router = APIRouter(prefix="/v1/address", tags=["address"])

_LOOKUP_ERRORS = {502: {"description": "Reference store unavailable", "model": ProblemDetail}}


@router.get("/provinces", response_model=ProvinceListResponse, responses=_LOOKUP_ERRORS)
async def list_provinces(
    search: str = Query("", description="Case-insensitive name fragment"),
    service: IntakeService = Depends(get_intake_service),
):
    return {"provinces": await service.lookup(GeoLevel.PROVINCE, search.strip())}


@router.get("/cities", response_model=CityListResponse, responses=_LOOKUP_ERRORS)
async def list_cities(
    search: str = Query("", description="Case-insensitive name fragment"),
    province_code: Optional[str] = Query(None, description="Restrict to one province"),
    service: IntakeService = Depends(get_intake_service),
):
    parent = province_code.strip() if province_code else None
    return {"cities": await service.lookup(GeoLevel.CITY, search.strip(), parent or None)}


@router.get(
    "/barangays",
    response_model=BarangayListResponse,
    responses={400: {"description": "city_code missing", "model": ProblemDetail}, **_LOOKUP_ERRORS},
)
async def list_barangays(
    city_code: Optional[str] = Query(None, description="City/municipality code (required)"),
    search: str = Query("", description="Case-insensitive name fragment"),
    service: IntakeService = Depends(get_intake_service),
):
    if not city_code or not city_code.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="city_code parameter is required",
        )
    return {"barangays": await service.lookup(GeoLevel.BARANGAY, search.strip(), city_code.strip())}


@router.post("/match", response_model=AddressResolutionResult)
async def match_address(
    address: AddressInput,
    service: IntakeService = Depends(get_intake_service),
):
    return await service.match_address(address)
