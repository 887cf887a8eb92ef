from __future__ import annotations
from decimal import Decimal
from typing import Dict, List, Optional
from pydantic import BaseModel, Field


class AmenitiesOut(BaseModel):
    category: Optional[str] = None
    amenities: Dict[str, List[str]] | List[str]


class PropertyTypeInfo(BaseModel):
    name: str
    description: str


class PopularAreasOut(BaseModel):
    county: Optional[str] = None
    areas: Dict[str, List[str]] | List[str]


class PhoneCheck(BaseModel):
    phone_number: str = Field(min_length=1, max_length=32)


class PhoneCheckResult(BaseModel):
    phone_number: str
    is_valid: bool
    normalized: Optional[str] = None


class CurrencyIn(BaseModel):
    amount: Decimal = Field(ge=0, le=Decimal("1e15"))


class CurrencyOut(BaseModel):
    amount: Decimal
    formatted: str
