"""
Row aggregation for the Travelogues catalog
Collapses flat join rows (one per publication x traveler pair) into nested
entities and groups publications into decade buckets
"""

from typing import Any, Callable, Dict, Hashable, Iterable, List, Mapping, Optional, Sequence, TypeVar

from .search_filters import DECADE_ONLY_THRESHOLD

T = TypeVar("T")
K = TypeVar("K", bound=Hashable)


def group_by_first_seen(items: Iterable[T], key: Callable[[T], K]) -> Dict[K, List[T]]:
    """
    Group items by key, keeping keys in order of first appearance

    Items inside each group keep their input order.

    Args:
        items: Items to group
        key: Function returning the grouping key of an item

    Returns:
        Insertion-ordered mapping of key to the items sharing it
    """
    groups: Dict[K, List[T]] = {}
    for item in items:
        groups.setdefault(key(item), []).append(item)
    return groups


def aggregate_rows(
    rows: Iterable[Mapping[str, Any]],
    child_columns: Mapping[str, str],
    children_key: str,
    id_column: str = "id",
    omit: Sequence[str] = (),
) -> List[Dict[str, Any]]:
    """
    Build one parent entity per distinct id from flat join rows

    The parent is taken from the first row carrying its id; every row
    (the first included) contributes one child. Child columns never appear on
    the parent. A row whose child columns are all NULL, as produced by a
    LEFT JOIN without a match, contributes no child, so the parent ends up
    with an empty list.

    Args:
        rows: Flat rows in query order
        child_columns: Mapping of row column to child field name
        children_key: Parent field that receives the child list
        id_column: Column identifying the parent
        omit: Further parent columns to drop from the output

    Returns:
        Parents in order of first appearance
    """
    entities = []
    for group in group_by_first_seen(rows, lambda row: row[id_column]).values():
        parent = {
            column: value
            for column, value in group[0].items()
            if column not in child_columns and column not in omit
        }
        children = []
        for row in group:
            child = {name: row[column] for column, name in child_columns.items()}
            if any(value is not None for value in child.values()):
                children.append(child)
        parent[children_key] = children
        entities.append(parent)
    return entities


# Column aliases the publication queries use for the contributing traveler
TRAVELER_COLUMNS = {
    "traveler_id": "id",
    "traveler_name": "name",
    "contribution_type": "type",
}

# Column aliases the traveler query uses for the contributed publication
PUBLICATION_COLUMNS = {
    "publication_id": "id",
    "publication_title": "title",
    "contribution_type": "contribution",
}


def aggregate_publications(rows: Iterable[Mapping[str, Any]], omit: Sequence[str] = ()) -> List[Dict[str, Any]]:
    """Collapse publication x traveler rows into publications with a ``travelers`` list"""
    return aggregate_rows(rows, TRAVELER_COLUMNS, "travelers", omit=omit)


def aggregate_travelers(rows: Iterable[Mapping[str, Any]]) -> List[Dict[str, Any]]:
    """Collapse traveler x publication rows into travelers with a ``publications`` list"""
    return aggregate_rows(rows, PUBLICATION_COLUMNS, "publications")


def decade_of(travel_year_min: Optional[int]) -> Optional[int]:
    """Decade key of a travel start year; decade-only values are already keys"""
    if travel_year_min is None or travel_year_min < DECADE_ONLY_THRESHOLD:
        return travel_year_min
    return travel_year_min // 10


def _decade_sort_key(decade: Optional[int]):
    # Unknown decade first, then ascending
    return (decade is not None, decade or 0)


def bucket_by_decade(publications: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Group aggregated publications into decade buckets

    Each bucket is ``{"decade": key, "publications": [...]}``. Buckets are sorted
    ascending with the unknown (None) bucket first; publications keep their
    incoming order within a bucket. ``travel_year_min`` is removed from the
    emitted publications.
    """
    groups = group_by_first_seen(publications, lambda publication: decade_of(publication.get("travel_year_min")))
    buckets = []
    for decade in sorted(groups, key=_decade_sort_key):
        members = [
            {column: value for column, value in publication.items() if column != "travel_year_min"}
            for publication in groups[decade]
        ]
        buckets.append({"decade": decade, "publications": members})
    return buckets
