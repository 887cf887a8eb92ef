from __future__ import annotations
import logging
from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from app.core.deps import require_approved_agent
from app.core.exceptions import ValidationError
from app.db.session import get_db
from app.models.location import County, SubCounty
from app.models.property import Property, PropertyType
from app.models.user import User
from app.schemas.property import PropertyCreate, PropertyOut, PropertyPage, PropertyUpdate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/properties", tags=["properties"])


# --- Helpers ---
def _load_property(db: Session, prop_id: int) -> Property:
    prop = db.get(Property, prop_id)
    if not prop:
        raise HTTPException(status_code=404, detail="Property not found")
    return prop


def _load_owned_property(db: Session, prop_id: int, user: User, action: str) -> Property:
    prop = _load_property(db, prop_id)
    if prop.agent_id != user.id and not user.is_admin:
        raise HTTPException(status_code=403, detail=f"You can only {action} your own properties")
    return prop


def _check_location(db: Session, county_id: int, sub_county_id: Optional[int]) -> None:
    if not db.get(County, county_id):
        raise ValidationError("Unknown county", field="county_id")
    if sub_county_id is not None:
        sub = db.get(SubCounty, sub_county_id)
        if not sub or sub.county_id != county_id:
            raise ValidationError("Sub-county does not belong to the county", field="sub_county_id")


# --- Public endpoints ---
@router.get("", response_model=PropertyPage)
def search_properties(
    db: Session = Depends(get_db),
    county_id: Optional[int] = None,
    sub_county_id: Optional[int] = None,
    property_type: Optional[PropertyType] = None,
    min_rent: Optional[Decimal] = Query(None, ge=0),
    max_rent: Optional[Decimal] = Query(None, ge=0),
    min_bedrooms: Optional[int] = Query(None, ge=0),
    max_bedrooms: Optional[int] = Query(None, ge=0),
    min_bathrooms: Optional[int] = Query(None, ge=0),
    is_furnished: Optional[bool] = None,
    has_parking: Optional[bool] = None,
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
):
    q = db.query(Property).filter(Property.is_available.is_(True))
    if county_id is not None:
        q = q.filter(Property.county_id == county_id)
    if sub_county_id is not None:
        q = q.filter(Property.sub_county_id == sub_county_id)
    if property_type is not None:
        q = q.filter(Property.property_type == property_type.value)
    if min_rent is not None:
        q = q.filter(Property.rent_amount >= min_rent)
    if max_rent is not None:
        q = q.filter(Property.rent_amount <= max_rent)
    if min_bedrooms is not None:
        q = q.filter(Property.bedrooms >= min_bedrooms)
    if max_bedrooms is not None:
        q = q.filter(Property.bedrooms <= max_bedrooms)
    if min_bathrooms is not None:
        q = q.filter(Property.bathrooms >= min_bathrooms)
    if is_furnished is not None:
        q = q.filter(Property.is_furnished.is_(is_furnished))
    if has_parking is True:
        q = q.filter(Property.parking_spaces > 0)
    elif has_parking is False:
        q = q.filter(Property.parking_spaces == 0)

    total = q.count()
    items = (
        q.order_by(Property.created_at.desc(), Property.id.desc())
        .limit(limit)
        .offset(offset)
        .all()
    )
    return PropertyPage(items=items, total=total, limit=limit, offset=offset)


# --- Agent endpoints ---
@router.get("/my", response_model=list[PropertyOut])
def list_my_properties(db: Session = Depends(get_db), user: User = Depends(require_approved_agent)):
    return (
        db.query(Property)
        .filter(Property.agent_id == user.id)
        .order_by(Property.created_at.desc(), Property.id.desc())
        .all()
    )


@router.get("/{property_id}", response_model=PropertyOut)
def get_property(property_id: int, db: Session = Depends(get_db)):
    return _load_property(db, property_id)


@router.post("", response_model=PropertyOut, status_code=status.HTTP_201_CREATED)
def create_property(
    payload: PropertyCreate,
    db: Session = Depends(get_db),
    user: User = Depends(require_approved_agent),
):
    _check_location(db, payload.county_id, payload.sub_county_id)

    data = payload.model_dump()
    data["property_type"] = payload.property_type.value
    prop = Property(agent_id=user.id, **data)
    db.add(prop)
    db.commit()
    db.refresh(prop)
    logger.info("Property created", extra={"property_id": prop.id, "agent_id": user.id})
    return prop


@router.put("/{property_id}", response_model=PropertyOut)
def update_property(
    property_id: int,
    payload: PropertyUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(require_approved_agent),
):
    prop = _load_owned_property(db, property_id, user, "update")

    changes = payload.model_dump(exclude_unset=True)
    for required in ("title", "property_type", "rent_amount", "county_id", "bedrooms", "bathrooms",
                     "parking_spaces", "is_furnished", "is_available", "amenities", "utilities_included"):
        if required in changes and changes[required] is None:
            raise ValidationError(f"{required} cannot be null", field=required)

    if "county_id" in changes or "sub_county_id" in changes:
        county_id = changes.get("county_id", prop.county_id)
        sub_county_id = changes.get("sub_county_id", prop.sub_county_id)
        if "county_id" in changes and "sub_county_id" not in changes and county_id != prop.county_id:
            sub_county_id = None
            changes["sub_county_id"] = None
        _check_location(db, county_id, sub_county_id)

    if changes.get("property_type") is not None:
        changes["property_type"] = PropertyType(changes["property_type"]).value

    for field, value in changes.items():
        setattr(prop, field, value)

    db.add(prop)
    db.commit()
    db.refresh(prop)
    logger.info("Property updated", extra={"property_id": prop.id, "fields": sorted(changes)})
    return prop


@router.delete("/{property_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_property(
    property_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(require_approved_agent),
):
    prop = _load_owned_property(db, property_id, user, "delete")
    db.delete(prop)
    db.commit()
    logger.info("Property deleted", extra={"property_id": property_id, "agent_id": user.id})
