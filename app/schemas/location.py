from __future__ import annotations
from typing import List
from pydantic import BaseModel


class SubCountyRead(BaseModel):
    id: int
    county_id: int
    name: str

    class Config:
        from_attributes = True


class CountyRead(BaseModel):
    id: int
    name: str
    code: str

    class Config:
        from_attributes = True


class CountyDetail(CountyRead):
    sub_counties: List[SubCountyRead] = []
