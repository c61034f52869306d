"""Normalize free-text remote-region eligibility into allowed-country codes."""
from __future__ import annotations

import re

WORLDWIDE = "Worldwide"

# Legacy ingestion labels → the codes ranking compares against.
REGION_LABEL_TO_CODE: dict[str, str] = {
    "global": WORLDWIDE,
    "worldwide": WORLDWIDE,
    "anywhere": WORLDWIDE,
    "us": "US",
    "usa": "US",
    "united states": "US",
    "north america": "US",
    "uk": "GB",
    "united kingdom": "GB",
    "brazil": "BR",
    "canada": "CA",
    "emea": "Europe",
    "europe": "Europe",
    "germany": "DE",
    "france": "FR",
    "spain": "ES",
    "australia": "APAC",
    "apac": "APAC",
}

_SPLIT_RE = re.compile(r"[,;]")


def normalize_region(label: str) -> str:
    """Map a single region label to its code; unknown labels pass through trimmed."""
    text = (label or "").strip()
    return REGION_LABEL_TO_CODE.get(text.lower(), text)


def allowed_countries_from_eligibility(raw: str | None) -> list[str]:
    """Split a stored ``remote_region_eligibility`` string into country codes.

    >>> allowed_countries_from_eligibility("US, UK; global")
    ['US', 'GB', 'Worldwide']
    """
    if not raw or not isinstance(raw, str):
        return []
    codes: list[str] = []
    for part in _SPLIT_RE.split(raw):
        code = normalize_region(part)
        if code and code not in codes:
            codes.append(code)
    return codes


def _codes(countries) -> set[str]:
    return {normalize_region(str(c)).lower() for c in countries if str(c).strip()}


def is_worldwide(countries) -> bool:
    return WORLDWIDE.lower() in _codes(countries)


def countries_overlap(job_countries, user_countries) -> bool:
    """True if either side is Worldwide or the two sets share a country.

    Labels and codes compare equal on both sides:

    >>> countries_overlap({"US"}, ["United States"])
    True
    """
    job_codes, user_codes = _codes(job_countries), _codes(user_countries)
    if WORLDWIDE.lower() in job_codes or WORLDWIDE.lower() in user_codes:
        return True
    return bool(job_codes & user_codes)
