"""
Search parameter helpers for the Travelogues catalog
Turns raw query-string values into full-text match expressions and
decides whether a publication's travel years fall inside a requested range
"""

from typing import Optional

# Travel years below this value only record the decade (179 means "the 1790s")
DECADE_ONLY_THRESHOLD = 1000


def none_if_empty(value: Optional[str]) -> Optional[str]:
    """Return None for an empty string so "not searched" differs from "search for nothing" """
    if value is None or value == "":
        return None
    return value


def fts_escape(query: Optional[str]) -> Optional[str]:
    """
    Quote every token of a phrase as an FTS5 string literal

    Embedded double quotes are doubled, then each whitespace separated token is
    wrapped in double quotes. The tokens are joined by a single space, which
    FTS5 reads as an implicit AND, and no token can act as a query operator.

    Args:
        query: Phrase typed by the user, or None

    Returns:
        Escaped query, or None when there is nothing to match
    """
    if query is None:
        return None
    tokens = query.replace('"', '""').split()
    if not tokens:
        return None
    return " ".join(f'"{token}"' for token in tokens)


def process_fts_query(query: Optional[str]) -> Optional[str]:
    """Sanitize a raw full-text search parameter; apply once per request"""
    return fts_escape(none_if_empty(query))


def _is_decade_only(year: int) -> bool:
    return year < DECADE_ONLY_THRESHOLD


def _matches_minimum(travel_year_min: Optional[int], search_min: Optional[int]) -> bool:
    if search_min is None:
        return True
    if travel_year_min is None:
        return False
    if _is_decade_only(travel_year_min):
        return search_min // 10 == travel_year_min
    return travel_year_min >= search_min


def _matches_maximum(
    travel_year_min: Optional[int],
    travel_year_max: Optional[int],
    search_max: Optional[int],
    include_unknown: bool,
) -> bool:
    if search_max is None:
        return True
    if travel_year_max is not None:
        return travel_year_max <= search_max
    if not include_unknown:
        return False
    # Open-ended travels: the start must not lie after the end of the search range
    if travel_year_min is None:
        return True
    if travel_year_min > search_max:
        return False
    return not _is_decade_only(travel_year_min) or search_max // 10 >= travel_year_min


def matches_date_range(
    travel_year_min: Optional[int],
    travel_year_max: Optional[int],
    search_min: Optional[int] = None,
    search_max: Optional[int] = None,
    include_unknown: bool = False,
) -> bool:
    """
    Check whether a publication's travel years fall within [search_min, search_max]

    A decade-only minimum (three digits) matches when search_min lies in the
    same decade. A publication without an end year is only kept when
    include_unknown is set, and then only if its start does not exceed
    search_max. A publication with neither year is kept when include_unknown
    is set and no search_min was given.

    Args:
        travel_year_min: Publication's first travel year (or decade), may be None
        travel_year_max: Publication's last travel year, None when unknown
        search_min: Earliest year requested by the client
        search_max: Latest year requested by the client
        include_unknown: Whether publications with unknown end years are wanted

    Returns:
        True when the publication should be part of the results
    """
    return (
        _matches_minimum(travel_year_min, search_min)
        and _matches_maximum(travel_year_min, travel_year_max, search_max, include_unknown)
    )
