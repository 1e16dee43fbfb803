"""
Catalog queries for the Travelogues API
Each function runs the request's query through a DatabaseManager and
reshapes the flat rows into the nested JSON the API returns
"""

import logging
from typing import Any, Dict, List, Optional

from .aggregation import aggregate_publications, aggregate_travelers, bucket_by_decade
from .database import DatabaseManager
from .errors import PublicationNotFoundError
from .search_filters import matches_date_range, none_if_empty, process_fts_query

logger = logging.getLogger(__name__)


async def get_publication(db: DatabaseManager, publication_id: int) -> Dict[str, Any]:
    """
    Get a publication with every contributing traveler

    Raises:
        PublicationNotFoundError: If no publication with contributions has this id
    """
    publication = await db.get_publication(publication_id)
    if publication is None:
        raise PublicationNotFoundError(publication_id)
    publication["travelers"] = await db.get_publication_contributors(publication_id)
    return publication


async def list_publications(db: DatabaseManager) -> List[Dict[str, Any]]:
    """All publications sorted by title, each with its travelers"""
    return aggregate_publications(await db.get_publication_rows())


async def list_decades(db: DatabaseManager) -> List[Dict[str, Any]]:
    """Publications grouped by the decade their travels start in"""
    return bucket_by_decade(aggregate_publications(await db.get_decade_rows()))


async def list_travelers(db: DatabaseManager) -> List[Dict[str, Any]]:
    """All travelers sorted by name, each with the publications they contributed to"""
    return aggregate_travelers(await db.get_traveler_rows())


async def search_publications(
    db: DatabaseManager,
    title: Optional[str] = None,
    summary: Optional[str] = None,
    traveler: Optional[str] = None,
    nationality: Optional[str] = None,
    gender: Optional[str] = None,
    roles: Optional[List[str]] = None,
    search_min: Optional[int] = None,
    search_max: Optional[int] = None,
    include_unknown: bool = False,
    readable: bool = False,
) -> List[Dict[str, Any]]:
    """
    Search publications

    Text arguments are raw user input: empty strings mean "not searched" and
    full-text fields are escaped here. The travel year range is applied to the
    query's rows afterwards, since the decade-only and open-ended year rules
    cannot be expressed in the query.

    Returns:
        Matching publications sorted by title with id, title, travel_dates and travelers
    """
    roles = [role for role in (roles or []) if role != ""]
    rows = await db.search_rows(
        title=process_fts_query(title),
        summary=process_fts_query(summary),
        traveler=process_fts_query(traveler),
        nationality=process_fts_query(nationality),
        gender=none_if_empty(gender),
        roles=roles or None,
        readable=readable,
    )
    matching = [
        row for row in rows
        if matches_date_range(
            row["travel_year_min"], row["travel_year_max"], search_min, search_max, include_unknown
        )
    ]
    publications = aggregate_publications(matching, omit=("travel_year_min", "travel_year_max"))
    logger.info(f"Travelogues Catalog: Search matched {len(publications)} publications")
    return publications
