from app.core.exceptions import ValidationError
from app.utils.strings import digits_only

COUNTRY_CODE = "254"


def normalize_ke_phone(raw: str) -> str:
    """
    Canonical Kenyan mobile form, `254XXXXXXXXX`.

    Separators and a leading '+' are ignored; then:
      - 0XXXXXXXXX   (10 digits) -> 254XXXXXXXXX
      - XXXXXXXXX    (9 digits)  -> 254XXXXXXXXX
      - 254XXXXXXXXX (12 digits) -> unchanged
    Anything else raises ValidationError.
    """
    digits = digits_only(raw or "")
    if len(digits) == 10 and digits.startswith("0"):
        return COUNTRY_CODE + digits[1:]
    if len(digits) == 9:
        return COUNTRY_CODE + digits
    if len(digits) == 12 and digits.startswith(COUNTRY_CODE):
        return digits
    raise ValidationError("Invalid phone number format", field="phone_number")
