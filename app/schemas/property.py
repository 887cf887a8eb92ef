from __future__ import annotations
from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional
from pydantic import BaseModel, Field

from app.models.property import PropertyType
from app.schemas.location import CountyRead, SubCountyRead


# --- Shared read-only pieces (show up in outputs) ---
class AgentOut(BaseModel):
    id: int
    first_name: str
    last_name: str
    phone_number: str
    email: str

    class Config:
        from_attributes = True


# --- Property models ---
class PropertyCreate(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    property_type: PropertyType
    bedrooms: int = Field(0, ge=0)
    bathrooms: int = Field(0, ge=0)
    square_meters: Optional[float] = Field(None, gt=0)
    rent_amount: Decimal = Field(gt=0)
    deposit_amount: Optional[Decimal] = Field(None, ge=0)
    county_id: int
    sub_county_id: Optional[int] = None
    location_details: Optional[str] = None
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    amenities: List[str] = []
    utilities_included: List[str] = []
    parking_spaces: int = Field(0, ge=0)
    is_furnished: bool = False
    is_available: bool = True
    availability_date: Optional[date] = None


class PropertyUpdate(BaseModel):
    """Partial update: only fields present in the body are applied."""
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    property_type: Optional[PropertyType] = None
    bedrooms: Optional[int] = Field(None, ge=0)
    bathrooms: Optional[int] = Field(None, ge=0)
    square_meters: Optional[float] = Field(None, gt=0)
    rent_amount: Optional[Decimal] = Field(None, gt=0)
    deposit_amount: Optional[Decimal] = Field(None, ge=0)
    county_id: Optional[int] = None
    sub_county_id: Optional[int] = None
    location_details: Optional[str] = None
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    amenities: Optional[List[str]] = None
    utilities_included: Optional[List[str]] = None
    parking_spaces: Optional[int] = Field(None, ge=0)
    is_furnished: Optional[bool] = None
    is_available: Optional[bool] = None
    availability_date: Optional[date] = None


class PropertyOut(BaseModel):
    id: int
    agent_id: int
    title: str
    description: Optional[str] = None
    property_type: PropertyType
    bedrooms: int
    bathrooms: int
    square_meters: Optional[float] = None
    rent_amount: Decimal
    deposit_amount: Optional[Decimal] = None
    county_id: int
    sub_county_id: Optional[int] = None
    location_details: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    amenities: List[str] = []
    utilities_included: List[str] = []
    parking_spaces: int
    is_furnished: bool
    is_available: bool
    availability_date: Optional[date] = None
    created_at: datetime
    updated_at: datetime

    county: Optional[CountyRead] = None
    sub_county: Optional[SubCountyRead] = None
    agent: Optional[AgentOut] = None

    class Config:
        from_attributes = True


class PropertyPage(BaseModel):
    items: List[PropertyOut]
    total: int
    limit: int
    offset: int
