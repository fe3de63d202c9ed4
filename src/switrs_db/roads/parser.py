"""
Road name parsing.

Collision reports carry free-text road fields such as ``1201 2ND ST``,
``RT 80 E/B`` or ``ADDISON ST. WESTBOUND, 1500 BLOCK``. ``parse_road``
splits such a field into the street itself plus the address, block and
direction fragments that officers append or prepend.

The structure is matched as one pattern, left to right:

    [address] [direction] STREET [.,]* [/B] [direction[.,/]*] [address | (N BLOCK)]$

Only the street is required. A leading address or direction is taken only
when the street after it does not itself start with a number or direction
word, so ``1200 5 POINTS`` and ``E N AVE`` stay whole and parsing a parsed
road again changes nothing. Which fragment wins when both a leading and a
trailing form are present is decided in ``parse_road``, not by group order.
"""

import re
from typing import Optional

from switrs_db.store.models import NormalizedRoad

# Longest forms first so "NORTHBOUND" is not read as "NORTH" or "N".
DIRECTIONS = (
    "NORTHBOUND", "EASTBOUND", "WESTBOUND", "SOUTHBOUND",
    "NORTH", "EAST", "WEST", "SOUTH",
    "N/B", "E/B", "W/B", "S/B",
    "NB", "EB", "WB", "SB",
    "N", "E", "W", "S",
)

_DIRECTION = "|".join(re.escape(d) for d in DIRECTIONS)

# I-80, RT 13, or a phrase of words that ends in a letter (2ND ST, SAN PABLO)
_STREET = r"(?:I-\d+)|(?:RT +\d+)|(?:\w+[ \w]+[^\W\d_]+)"

# what the leading groups strip; a street left behind by them must not start with it
_LEADING = rf"(?:\d+|{_DIRECTION}) "

ROAD_PATTERN = re.compile(
    r"(?:^(?P<address_pre>\d+) +)?"
    rf"(?:(?P<direction_pre>{_DIRECTION}) +)?"
    rf"(?(address_pre)(?!{_LEADING}))"
    rf"(?(direction_pre)(?!{_LEADING}))"
    rf"(?P<street>{_STREET})"
    r"[.,]*"
    r"(?:/B)?"
    rf"(?: +(?P<direction_post>{_DIRECTION})[.,/]*)?"
    r"(?: +(?:(?P<address_post>\d+)|(?:\(?(?P<block>\d+) BLOCK\)?))$)?"
)

_SPACES = re.compile(r" +")


def collapse_spaces(text: str) -> str:
    """Replace runs of spaces with a single space."""
    return _SPACES.sub(" ", text)


def _first(match: re.Match, *groups: str) -> Optional[str]:
    for group in groups:
        value = match.group(group)
        if value is not None:
            return value
    return None


def parse_road(raw: Optional[str]) -> NormalizedRoad:
    """Split a raw road field into street, address, block and direction.

    Never raises. When the text has no recognizable street, the trimmed
    text with collapsed spaces is returned as the road.

    Args:
        raw: Road text as recorded on the collision report (None is empty)

    Returns:
        NormalizedRoad

    Examples:
        >>> parse_road("1201 2ND ST")
        NormalizedRoad(road='2ND ST', address='1201', block=None, direction=None)
        >>> parse_road("RT 80 E").direction
        'E'
    """
    text = raw or ""
    match = ROAD_PATTERN.search(text)

    if match is None:
        return NormalizedRoad(road=collapse_spaces(text.strip()))

    return NormalizedRoad(
        road=collapse_spaces(match.group("street")),
        address=_first(match, "address_pre", "address_post"),
        block=match.group("block"),
        # travel direction is usually appended after the street
        direction=_first(match, "direction_post", "direction_pre"),
    )
