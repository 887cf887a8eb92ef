import logging

from sqlalchemy.orm import Session

from app.models.location import County, SubCounty

logger = logging.getLogger(__name__)

# (code, name), official county codes
KENYA_COUNTIES = [
    ("001", "Mombasa"), ("002", "Kwale"), ("003", "Kilifi"), ("004", "Tana River"),
    ("005", "Lamu"), ("006", "Taita-Taveta"), ("007", "Garissa"), ("008", "Wajir"),
    ("009", "Mandera"), ("010", "Marsabit"), ("011", "Isiolo"), ("012", "Meru"),
    ("013", "Tharaka-Nithi"), ("014", "Embu"), ("015", "Kitui"), ("016", "Machakos"),
    ("017", "Makueni"), ("018", "Nyandarua"), ("019", "Nyeri"), ("020", "Kirinyaga"),
    ("021", "Murang'a"), ("022", "Kiambu"), ("023", "Turkana"), ("024", "West Pokot"),
    ("025", "Samburu"), ("026", "Trans Nzoia"), ("027", "Uasin Gishu"), ("028", "Elgeyo-Marakwet"),
    ("029", "Nandi"), ("030", "Baringo"), ("031", "Laikipia"), ("032", "Nakuru"),
    ("033", "Narok"), ("034", "Kajiado"), ("035", "Kericho"), ("036", "Bomet"),
    ("037", "Kakamega"), ("038", "Vihiga"), ("039", "Bungoma"), ("040", "Busia"),
    ("041", "Siaya"), ("042", "Kisumu"), ("043", "Homa Bay"), ("044", "Migori"),
    ("045", "Kisii"), ("046", "Nyamira"), ("047", "Nairobi"),
]

SUB_COUNTIES = {
    "047": [
        "Westlands", "Dagoretti North", "Dagoretti South", "Lang'ata", "Kibra",
        "Roysambu", "Kasarani", "Ruaraka", "Embakasi South", "Embakasi North",
        "Embakasi Central", "Embakasi East", "Embakasi West", "Makadara",
        "Kamukunji", "Starehe", "Mathare",
    ],
}


def seed_locations(db: Session) -> int:
    """Insert missing counties and sub-counties. Idempotent; returns rows added."""
    existing = {c.code: c for c in db.query(County).all()}
    added = 0
    for code, name in KENYA_COUNTIES:
        if code not in existing:
            county = County(code=code, name=name)
            db.add(county)
            existing[code] = county
            added += 1
    db.flush()

    for code, names in SUB_COUNTIES.items():
        county = existing[code]
        have = {s.name for s in db.query(SubCounty).filter(SubCounty.county_id == county.id)}
        for name in names:
            if name not in have:
                db.add(SubCounty(county_id=county.id, name=name))
                added += 1
    db.commit()
    if added:
        logger.info("Seeded %d location rows", added)
    return added
