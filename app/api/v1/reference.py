from __future__ import annotations
from typing import Dict, Optional

from fastapi import APIRouter, HTTPException

from app.core.exceptions import ValidationError
from app.schemas.reference import (
    AmenitiesOut,
    CurrencyIn,
    CurrencyOut,
    PhoneCheck,
    PhoneCheckResult,
    PopularAreasOut,
    PropertyTypeInfo,
)
from app.services import reference
from app.utils.phone import normalize_ke_phone

router = APIRouter(prefix="/v1/reference", tags=["reference"])


@router.get("/amenities", response_model=AmenitiesOut, response_model_exclude_none=True)
def list_amenities(category: Optional[str] = None):
    if category:
        return {"category": category, "amenities": reference.amenities_in(category)}
    return {"amenities": reference.AMENITIES}


@router.get("/property-types", response_model=Dict[str, PropertyTypeInfo])
def list_property_types():
    return {
        ptype.value: {"name": ptype.value, "description": text}
        for ptype, text in reference.PROPERTY_TYPE_DESCRIPTIONS.items()
    }


@router.get("/utilities", response_model=Dict[str, bool])
def list_utilities():
    return reference.UTILITIES


@router.get("/rental-terms", response_model=Dict[str, str])
def list_rental_terms():
    return reference.RENTAL_TERMS


@router.get("/popular-areas", response_model=PopularAreasOut, response_model_exclude_none=True)
def list_popular_areas(county: Optional[str] = None):
    if county:
        found = reference.popular_areas_in(county)
        if not found:
            raise HTTPException(status_code=404, detail="County not found")
        name, areas = found
        return {"county": name, "areas": areas}
    return {"areas": reference.POPULAR_AREAS}


@router.post("/validate-phone", response_model=PhoneCheckResult)
def validate_phone(payload: PhoneCheck):
    """Same rules as registration; never fails on a bad number."""
    try:
        normalized = normalize_ke_phone(payload.phone_number)
    except ValidationError:
        return {"phone_number": payload.phone_number, "is_valid": False}
    return {"phone_number": payload.phone_number, "is_valid": True, "normalized": normalized}


@router.post("/format-currency", response_model=CurrencyOut)
def format_currency(payload: CurrencyIn):
    return {"amount": payload.amount, "formatted": reference.format_kes(payload.amount)}
