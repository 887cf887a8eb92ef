from __future__ import annotations
import enum
from datetime import date, datetime
from decimal import Decimal
from typing import Optional, List

from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import (
    String, Text, ForeignKey, DateTime, Date, Integer, Numeric, Boolean, Float, JSON, func
)

from app.db.base import Base


class PropertyType(str, enum.Enum):
    APARTMENT = "apartment"
    HOUSE = "house"
    BEDSITTER = "bedsitter"
    STUDIO = "studio"
    MAISONETTE = "maisonette"
    BUNGALOW = "bungalow"
    VILLA = "villa"
    COMMERCIAL = "commercial"


class Property(Base):
    __tablename__ = "properties"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)

    agent_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False
    )

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    property_type: Mapped[str] = mapped_column(String(20), index=True, nullable=False)
    bedrooms: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    bathrooms: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    square_meters: Mapped[Optional[float]] = mapped_column(Float)

    rent_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), index=True, nullable=False)
    deposit_amount: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 2))

    county_id: Mapped[int] = mapped_column(
        ForeignKey("counties.id", ondelete="RESTRICT"), index=True, nullable=False
    )
    sub_county_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("sub_counties.id", ondelete="SET NULL"), index=True
    )
    location_details: Mapped[Optional[str]] = mapped_column(Text)
    latitude: Mapped[Optional[float]] = mapped_column(Float)
    longitude: Mapped[Optional[float]] = mapped_column(Float)

    amenities: Mapped[List[str]] = mapped_column(JSON, default=list, nullable=False)
    utilities_included: Mapped[List[str]] = mapped_column(JSON, default=list, nullable=False)
    parking_spaces: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    is_furnished: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_available: Mapped[bool] = mapped_column(Boolean, default=True, index=True, nullable=False)
    availability_date: Mapped[Optional[date]] = mapped_column(Date)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )

    # --- Relationships ---
    agent: Mapped["User"] = relationship("User", lazy="joined")
    county: Mapped["County"] = relationship("County", lazy="joined")
    sub_county: Mapped[Optional["SubCounty"]] = relationship("SubCounty", lazy="joined")
