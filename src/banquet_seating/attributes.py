"""Typed facts read from a guest's attribute bag.

Guest facts arrive as a loosely typed key/value bag: keys come in several
spellings and values may be booleans, numbers or strings such as ``"Ja"``.
This module is the only place that looks at the raw bag; everything else
works with the booleans and color tag returned here.

None of these functions raise. A bag that cannot be parsed reads as empty,
so every question answers ``False`` (or ``""`` for the color tag).
"""
from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Dict, Iterable, Optional

from .config import (
    ATTENDING_KEYS,
    COLOR_KEYS,
    COLOR_TAGS,
    FEMALE_KEYS,
    PRESS_KEYS,
    RSVP_KEYS,
    TRUTHY_STRINGS,
    VIP_KEYS,
    VIP_TRUTHY_STRINGS,
)
from .models import Guest, PartitionKey


def parse_attribute_bag(raw: object) -> Dict[str, object]:
    """Return the bag as a dict. JSON object text is decoded, junk is ``{}``."""
    if isinstance(raw, Mapping):
        return dict(raw)
    if isinstance(raw, (bytes, bytearray)):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError:
            return {}
    if isinstance(raw, str):
        try:
            decoded = json.loads(raw)
        except ValueError:
            return {}
        return decoded if isinstance(decoded, dict) else {}
    return {}


def _normalize_key(key: object) -> str:
    return " ".join(str(key).split()).casefold()


def _lookup(bag: Dict[str, object], keys: Iterable[str]) -> Optional[object]:
    keys = tuple(keys)
    for key in keys:
        value = bag.get(key)
        if value is not None:
            return value
    wanted = {_normalize_key(k) for k in keys}
    for key, value in bag.items():
        if value is not None and _normalize_key(key) in wanted:
            return value
    return None


def is_truthy(value: object, strings: frozenset = TRUTHY_STRINGS) -> bool:
    """``True``, numeric ``1`` or one of ``strings`` (trimmed, any case)."""
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value == 1
    if isinstance(value, str):
        return value.strip().lower() in strings
    return False


def is_vip(guest: Guest) -> bool:
    if is_truthy(guest.is_vip, VIP_TRUTHY_STRINGS):
        return True
    bag = parse_attribute_bag(guest.attributes)
    return is_truthy(_lookup(bag, VIP_KEYS), VIP_TRUTHY_STRINGS)


def has_rsvp_or_attending(guest: Guest) -> bool:
    bag = parse_attribute_bag(guest.attributes)
    return is_truthy(_lookup(bag, RSVP_KEYS)) or is_truthy(_lookup(bag, ATTENDING_KEYS))


def is_female(guest: Guest) -> bool:
    return is_truthy(_lookup(parse_attribute_bag(guest.attributes), FEMALE_KEYS))


def is_press(guest: Guest) -> bool:
    return is_truthy(_lookup(parse_attribute_bag(guest.attributes), PRESS_KEYS))


def color_tag(guest: Guest) -> str:
    """Color block ``"1"`` to ``"4"``; anything else is the untagged ``""``."""
    value = _lookup(parse_attribute_bag(guest.attributes), COLOR_KEYS)
    if value is None or isinstance(value, (bool, float)):
        return ""
    tag = str(value).strip()
    return tag if tag in COLOR_TAGS else ""


def partition_key(guest: Guest) -> PartitionKey:
    return PartitionKey(is_female(guest), color_tag(guest))
