# appstats/conversion.py
import re
from typing import Optional

# Pierwszy ciąg "X[.Y[.Z]]" w tekście, niezależnie od prefiksów typu "v" czy "build-"
LOOSE_VERSION_REGEX = re.compile(r"(?<!\d)(\d{1,16})(?:\.(\d{1,16}))?(?:\.(\d{1,16}))?(?!\d)")


def coerce_version(value: Optional[str]) -> Optional[str]:
    """
    Normalizuje luźno zapisaną wersję do postaci major.minor.patch.
    "v1.2" -> "1.2.0", "build 42" -> "42.0.0". Zwraca None, gdy w tekście nie ma liczb.
    """
    if not value:
        return None
    match = LOOSE_VERSION_REGEX.search(value)
    if not match:
        return None
    major, minor, patch = (int(part or 0) for part in match.groups())
    return f"{major}.{minor}.{patch}"


def app_id_to_url(app_id: str) -> str:
    return app_id.replace(".", "--")
