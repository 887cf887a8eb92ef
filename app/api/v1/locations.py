from __future__ import annotations
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session, selectinload

from app.db.session import get_db
from app.models.location import County, SubCounty
from app.schemas.location import CountyRead, CountyDetail, SubCountyRead

router = APIRouter(prefix="/v1/locations", tags=["locations"])


def _get_county(db: Session, county_id: int) -> County:
    county = db.get(County, county_id, options=(selectinload(County.sub_counties),))
    if not county:
        raise HTTPException(status_code=404, detail="County not found")
    return county


@router.get("/counties", response_model=list[CountyRead])
def list_counties(db: Session = Depends(get_db)):
    return db.query(County).order_by(County.name.asc()).all()


@router.get("/counties/{county_id}", response_model=CountyDetail)
def get_county(county_id: int, db: Session = Depends(get_db)):
    return _get_county(db, county_id)


@router.get("/counties/{county_id}/sub-counties", response_model=list[SubCountyRead])
def list_sub_counties(county_id: int, db: Session = Depends(get_db)):
    return _get_county(db, county_id).sub_counties


@router.get("/sub-counties/{sub_county_id}", response_model=SubCountyRead)
def get_sub_county(sub_county_id: int, db: Session = Depends(get_db)):
    sub = db.get(SubCounty, sub_county_id)
    if not sub:
        raise HTTPException(status_code=404, detail="Sub-county not found")
    return sub
