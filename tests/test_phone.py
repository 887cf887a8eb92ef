# tests/test_phone.py

import pytest

from app.core.exceptions import ValidationError
from app.utils.phone import normalize_ke_phone


@pytest.mark.parametrize("raw", ["0712345678", "712345678", "254712345678"])
def test_local_forms_normalize_to_country_code(raw):
    assert normalize_ke_phone(raw) == "254712345678"


def test_separators_and_plus_are_ignored():
    assert normalize_ke_phone("+254 712-345 678") == "254712345678"
    assert normalize_ke_phone("0712 345 678") == "254712345678"


@pytest.mark.parametrize(
    "raw",
    ["", "12345", "07123456789", "1712345678", "255712345678", "abc", "７１２３４５６７８", "07123456²³"],
)
def test_other_shapes_are_rejected(raw):
    with pytest.raises(ValidationError):
        normalize_ke_phone(raw)
