from __future__ import annotations

import re
from collections.abc import Iterable

LOCATION_ALIASES = {
    "west us": "westus",
    "west us 2": "westus2",
    "east us": "eastus",
    "east us 2": "eastus2",
    "central us": "centralus",
    "west europe": "westeurope",
    "north europe": "northeurope",
    "uk south": "uksouth",
}

_NAME_PATTERNS: dict[str, re.Pattern[str]] = {
    "resource_group": re.compile(r"^[-\w._()]{1,89}[-\w_()]$"),
    # 6-50 chars, starts with a letter, ends with a letter or number.
    "namespace": re.compile(r"^[a-zA-Z][a-zA-Z0-9-]{4,48}[a-zA-Z0-9]$"),
    "queue": re.compile(r"^[a-zA-Z0-9][a-zA-Z0-9._/~-]{0,258}[a-zA-Z0-9_]$|^[a-zA-Z0-9]$"),
    "topic": re.compile(r"^[a-zA-Z0-9][a-zA-Z0-9._/~-]{0,258}[a-zA-Z0-9_]$|^[a-zA-Z0-9]$"),
    "subscription": re.compile(r"^[a-zA-Z0-9][a-zA-Z0-9._-]{0,48}[a-zA-Z0-9_]$|^[a-zA-Z0-9]$"),
    "authorization_rule": re.compile(r"^[a-zA-Z0-9][a-zA-Z0-9._-]{0,48}[a-zA-Z0-9_]$|^[a-zA-Z0-9]$"),
    "generic": re.compile(r"^[a-zA-Z0-9-_.]{1,80}$"),
}

ACCESS_RIGHTS = ("Manage", "Send", "Listen")


def validate_name(kind: str, value: str | None) -> bool:
    if not value:
        return False
    if kind == "namespace" and value.lower().endswith(("-sb", "-mgmt")):
        return False
    pat = _NAME_PATTERNS.get(kind) or _NAME_PATTERNS["generic"]
    return bool(pat.match(value))


def normalize_location(loc: str) -> str:
    loc_lower = loc.lower().strip()
    return LOCATION_ALIASES.get(loc_lower, loc_lower)


def validate_location(loc: str | None, allowed: Iterable[str]) -> bool:
    if not loc:
        return False
    return normalize_location(loc) in {a.lower() for a in allowed}


def validate_rights(rights: Iterable[str]) -> bool:
    values = list(rights)
    if not values or any(r not in ACCESS_RIGHTS for r in values):
        return False
    # Manage implies the other two rights and must be granted with them.
    if "Manage" in values:
        return {"Send", "Listen"} <= set(values)
    return True
