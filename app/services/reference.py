from decimal import Decimal, ROUND_HALF_EVEN

from app.models.property import PropertyType

AMENITIES: dict[str, list[str]] = {
    "security": [
        "24/7 Security", "CCTV Surveillance", "Electric Fence", "Security Guards",
        "Gated Community", "Access Control", "Perimeter Wall", "Security Lights",
    ],
    "utilities": [
        "Borehole Water", "Mains Water", "Backup Generator", "Solar Water Heating",
        "Solar Power", "Prepaid Electricity", "Garbage Collection", "Internet Ready",
        "DSTV Ready", "Intercom System",
    ],
    "kitchen": [
        "Modern Kitchen", "Kitchen Cabinets", "Granite Countertops", "Gas Cooker",
        "Electric Cooker", "Microwave", "Refrigerator", "Dishwasher", "Pantry",
        "Breakfast Bar",
    ],
    "bathroom": [
        "En-suite Bathroom", "Guest Toilet", "Bathtub", "Shower Cubicle", "Hot Water",
        "Modern Fixtures", "Vanity Unit", "Bidet",
    ],
    "outdoor": [
        "Garden", "Balcony", "Terrace", "Rooftop Access", "Compound Parking", "Carport",
        "Garage", "Servant Quarter", "Laundry Area", "Outdoor Kitchen", "Barbecue Area",
        "Children Play Area",
    ],
    "flooring": [
        "Tiled Floors", "Wooden Floors", "Marble Floors", "Terrazzo Floors",
        "Carpeted Floors", "Ceramic Tiles", "Granite Floors",
    ],
    "facilities": [
        "Swimming Pool", "Gym/Fitness Center", "Clubhouse", "Tennis Court",
        "Basketball Court", "Children Playground", "Jogging Track", "Spa", "Sauna",
        "Conference Room", "Business Center", "Lift/Elevator", "Backup Water Tank",
        "Waste Management",
    ],
    "location": [
        "Near Shopping Mall", "Near School", "Near Hospital", "Near Public Transport",
        "Near Highway", "Near Airport", "Near CBD", "Quiet Neighborhood",
        "Residential Area", "Commercial Area", "Mixed Development",
    ],
}

# keyed by the listing types the properties API accepts
PROPERTY_TYPE_DESCRIPTIONS: dict[PropertyType, str] = {
    PropertyType.APARTMENT: "Multi-room unit in a building with shared facilities",
    PropertyType.HOUSE: "Standalone house, often in a shared compound",
    PropertyType.BEDSITTER: "A single room with a small kitchen area and private bathroom",
    PropertyType.STUDIO: "Open plan living space with separate bathroom",
    PropertyType.MAISONETTE: "Two-story apartment or house unit",
    PropertyType.BUNGALOW: "Single-story detached house",
    PropertyType.VILLA: "Large, luxurious house often in gated community",
    PropertyType.COMMERCIAL: "Property for business use (shops, offices, warehouses)",
}

# True when usually included in the rent
UTILITIES: dict[str, bool] = {
    "water": True,
    "electricity": False,
    "garbage": True,
    "security": True,
    "internet": False,
    "cable_tv": False,
    "gas": False,
    "parking": True,
    "garden_service": False,
    "cleaning": False,
}

RENTAL_TERMS: dict[str, str] = {
    "deposit": "Usually 1-2 months rent paid upfront as security deposit",
    "advance_rent": "1-3 months rent paid in advance",
    "agent_fee": "Usually 50% of one month's rent paid to agent",
    "lease_period": "Typically 1-2 years with option to renew",
    "notice_period": "Usually 1-3 months notice required to vacate",
    "maintenance": "Tenant responsible for minor repairs, landlord for major",
    "utilities": "Tenant usually pays electricity, water may be included",
    "pets": "Usually not allowed or require additional deposit",
}

POPULAR_AREAS: dict[str, list[str]] = {
    "Nairobi": [
        "Westlands", "Karen", "Kilimani", "Lavington", "Kileleshwa", "Runda", "Muthaiga",
        "Spring Valley", "Loresho", "Gigiri", "Parklands", "Eastleigh", "South B",
        "South C", "Langata", "Kasarani", "Roysambu", "Thika Road", "Ngong Road",
        "Waiyaki Way",
    ],
    "Mombasa": [
        "Nyali", "Bamburi", "Shanzu", "Diani", "Likoni", "Tudor", "Kizingo", "Ganjoni",
        "Mtwapa", "Kilifi",
    ],
    "Kiambu": [
        "Thika", "Ruiru", "Juja", "Kikuyu", "Limuru", "Kiambu Town", "Githunguri",
        "Gatundu", "Lari",
    ],
    "Nakuru": [
        "Nakuru Town", "Naivasha", "Gilgil", "Molo", "Njoro", "Bahati", "Rongai", "Subukia",
    ],
    "Uasin Gishu": ["Eldoret", "Moiben", "Soy", "Turbo", "Kapseret"],
}


def amenities_in(category: str) -> list[str]:
    """Unknown categories give an empty list."""
    return AMENITIES.get(category.strip().lower(), [])


def popular_areas_in(county: str) -> tuple[str, list[str]] | None:
    """Case-insensitive county lookup; returns (canonical name, areas)."""
    wanted = county.strip().lower()
    for name, areas in POPULAR_AREAS.items():
        if name.lower() == wanted:
            return name, areas
    return None


def format_kes(amount: Decimal) -> str:
    """
    Short display form used on listing cards:
      2_500_000 -> "KES 2.5M", 65_000 -> "KES 65K", 750 -> "KES 750".
    Ties round to even.
    """
    amount = Decimal(amount)
    if amount >= 1_000_000:
        return f"KES {(amount / 1_000_000).quantize(Decimal('0.1'), ROUND_HALF_EVEN)}M"
    if amount >= 1_000:
        return f"KES {(amount / 1_000).quantize(Decimal('1'), ROUND_HALF_EVEN)}K"
    return f"KES {amount.quantize(Decimal('1'), ROUND_HALF_EVEN)}"
