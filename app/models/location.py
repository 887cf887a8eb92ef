# app/models/location.py
from __future__ import annotations
from typing import List
from sqlalchemy import Integer, String, ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from app.db.base import Base


class County(Base):
    __tablename__ = "counties"
    __table_args__ = (
        UniqueConstraint("name", name="uq_counties_name"),
        UniqueConstraint("code", name="uq_counties_code"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    code: Mapped[str] = mapped_column(String(3), nullable=False)

    sub_counties: Mapped[List["SubCounty"]] = relationship(
        "SubCounty",
        back_populates="county",
        cascade="all, delete-orphan",
        order_by="SubCounty.name",
    )


class SubCounty(Base):
    __tablename__ = "sub_counties"
    __table_args__ = (UniqueConstraint("county_id", "name", name="uq_sub_counties_county_name"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    county_id: Mapped[int] = mapped_column(ForeignKey("counties.id", ondelete="CASCADE"), index=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)

    county: Mapped["County"] = relationship("County", back_populates="sub_counties")
