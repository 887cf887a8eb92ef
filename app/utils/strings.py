from typing import Optional


def norm_str(s: Optional[str]) -> Optional[str]:
    if isinstance(s, str):
        s = s.strip()
        return s or None
    return None


def norm_email(s: Optional[str]) -> Optional[str]:
    s = norm_str(s)
    return s.lower() if s is not None else None


def digits_only(s: str) -> str:
    # ASCII only: str.isdigit also accepts fullwidth and superscript digits
    return "".join(ch for ch in s if ch in "0123456789")
