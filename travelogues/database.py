"""
Database manager for the Travelogues catalog
Async SQLite access through aiosqlite; every method issues parameterized,
read-only queries except the schema and import helpers used by the CLI
"""

import json
import sqlite3
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

import aiosqlite

logger = logging.getLogger(__name__)


class DatabaseConnectionError(Exception):
    """Raised when the query executor fails"""
    pass


class DataValidationError(Exception):
    """Raised when imported data is malformed"""
    pass


SCHEMA_STATEMENTS = [
    """
    CREATE TABLE IF NOT EXISTS publications (
        id INTEGER PRIMARY KEY,
        title TEXT NOT NULL,
        summary TEXT,
        travel_dates TEXT,
        travel_year_min INTEGER,
        travel_year_max INTEGER,
        publisher TEXT,
        publication_place TEXT,
        publication_date TEXT,
        publisher_misc TEXT,
        url TEXT,
        iiif TEXT
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS travelers (
        id INTEGER PRIMARY KEY,
        name TEXT NOT NULL,
        nationality TEXT,
        gender TEXT
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS contributions (
        publication_id INTEGER NOT NULL REFERENCES publications (id),
        traveler_id INTEGER NOT NULL REFERENCES travelers (id),
        type TEXT NOT NULL,
        PRIMARY KEY (publication_id, traveler_id, type)
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_contributions_traveler_id ON contributions(traveler_id)",
    """
    CREATE VIRTUAL TABLE IF NOT EXISTS publicationsfts
    USING fts5(title, summary, content='publications', content_rowid='id')
    """,
    """
    CREATE VIRTUAL TABLE IF NOT EXISTS travelersfts
    USING fts5(name, nationality, content='travelers', content_rowid='id')
    """,
]

PUBLICATION_FIELDS = [
    "id", "title", "summary", "travel_dates", "travel_year_min", "travel_year_max",
    "publisher", "publication_place", "publication_date", "publisher_misc", "url", "iiif",
]
TRAVELER_FIELDS = ["id", "name", "nationality", "gender"]
CONTRIBUTION_FIELDS = ["publication_id", "traveler_id", "type"]

# The FTS tables cannot be queried with "col MATCH ? OR ? IS NULL" directly, so each
# optional match goes through a rowid subquery instead
SEARCH_QUERY = """
    SELECT c.publication_id id, pubftsmatches.title, pubftsmatches.travel_dates,
           t.id traveler_id, t.name traveler_name, c.type contribution_type,
           pubftsmatches.travel_year_min, pubftsmatches.travel_year_max
    FROM contributions c
    INNER JOIN (
        SELECT pfts.rowid, trim(p.title) title, p.travel_dates, p.travel_year_min, p.travel_year_max, p.iiif
        FROM publicationsfts pfts
        INNER JOIN publications p ON pfts.rowid = p.id
        WHERE (:title IS NULL OR pfts.rowid IN (SELECT rowid FROM publicationsfts WHERE title MATCH :title))
          AND (:summary IS NULL OR pfts.rowid IN (SELECT rowid FROM publicationsfts WHERE summary MATCH :summary))
          AND (:readable IS NULL OR p.iiif IS NOT NULL)
    ) pubftsmatches
        ON pubftsmatches.rowid = c.publication_id
    INNER JOIN travelers t ON t.id = c.traveler_id
    WHERE c.publication_id IN (
        SELECT c2.publication_id FROM travelersfts tfts
        INNER JOIN travelers t2 ON tfts.rowid = t2.id
        INNER JOIN contributions c2 ON tfts.rowid = c2.traveler_id
        WHERE (:traveler IS NULL OR tfts.rowid IN (SELECT rowid FROM travelersfts WHERE name MATCH :traveler))
          AND (:nationality IS NULL OR tfts.rowid IN (SELECT rowid FROM travelersfts WHERE nationality MATCH :nationality))
          AND (:gender IS NULL OR t2.gender = :gender)
          AND (:roles IS NULL OR c2.type IN (SELECT value FROM json_each(:roles)))
    )
    ORDER BY pubftsmatches.title COLLATE NOCASE ASC, c.publication_id, c.rowid
"""


class DatabaseManager:
    """
    Manages SQLite access for the Travelogues catalog

    One manager wraps one aiosqlite connection. The API opens a manager per
    request and closes it once the response is built, so no state is shared
    between requests.
    """

    def __init__(self, db_path: Union[str, Path], read_only: bool = False):
        """
        Initialize database manager

        Args:
            db_path: Path to the SQLite database file
            read_only: Open the file read-only; a missing file is then an error
                instead of being created empty
        """
        self.db_path = Path(db_path)
        self.read_only = read_only
        self.connection: Optional[aiosqlite.Connection] = None

    async def __aenter__(self) -> "DatabaseManager":
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def connect(self) -> None:
        """
        Open the database connection

        Raises:
            DatabaseConnectionError: If the file cannot be opened
        """
        try:
            if self.read_only:
                self.connection = await aiosqlite.connect(f"{self.db_path.resolve().as_uri()}?mode=ro", uri=True)
            else:
                self.connection = await aiosqlite.connect(str(self.db_path))
            self.connection.row_factory = sqlite3.Row
            logger.debug(f"Travelogues Database: Connected to {self.db_path}")
        except Exception as e:
            logger.error(f"Travelogues Database: Connection to {self.db_path} failed: {e}")
            self.connection = None
            raise DatabaseConnectionError(f"Failed to open database {self.db_path}") from e

    async def close(self) -> None:
        """Close the database connection"""
        if self.connection is not None:
            await self.connection.close()
            self.connection = None
            logger.debug("Travelogues Database: Connection closed")

    async def _fetch_all(self, query: str, params: Union[Mapping[str, Any], Iterable[Any]] = ()) -> List[Dict[str, Any]]:
        if self.connection is None:
            raise DatabaseConnectionError("Database not connected")
        try:
            async with self.connection.execute(query, params) as cursor:
                rows = await cursor.fetchall()
        except Exception as e:
            logger.error(f"Travelogues Database: Query failed: {e}")
            raise DatabaseConnectionError(f"Query failed: {e}") from e
        return [dict(row) for row in rows]

    async def _fetch_one(self, query: str, params: Union[Mapping[str, Any], Iterable[Any]] = ()) -> Optional[Dict[str, Any]]:
        rows = await self._fetch_all(query, params)
        return rows[0] if rows else None

    async def get_publication(self, publication_id: int) -> Optional[Dict[str, Any]]:
        """
        Get a publication's details

        Only publications with at least one contribution are found.

        Args:
            publication_id: Publication ID

        Returns:
            Publication fields, or None when the id does not exist
        """
        return await self._fetch_one("""
            SELECT p.id, p.title, p.travel_dates, p.publisher, p.publication_place,
                   p.publication_date, p.publisher_misc, p.summary, p.url, p.iiif
            FROM contributions c
            INNER JOIN publications p ON p.id = c.publication_id
            WHERE p.id = ?
            LIMIT 1
        """, (publication_id,))

    async def get_publication_contributors(self, publication_id: int) -> List[Dict[str, Any]]:
        """Get the travelers who contributed to a publication, with their role"""
        return await self._fetch_all("""
            SELECT t.id, t.name, t.nationality, t.gender, c.type
            FROM contributions c
            INNER JOIN travelers t ON t.id = c.traveler_id
            WHERE c.publication_id = ?
            ORDER BY c.rowid
        """, (publication_id,))

    async def get_publication_rows(self) -> List[Dict[str, Any]]:
        """One row per publication x contributing traveler, ordered by title"""
        rows = await self._fetch_all("""
            SELECT p.id, trim(p.title) title, p.summary, t.id traveler_id,
                   t.name traveler_name, c.type contribution_type
            FROM contributions c
            INNER JOIN publications p ON p.id = c.publication_id
            INNER JOIN travelers t ON t.id = c.traveler_id
            ORDER BY title COLLATE NOCASE ASC, p.id, c.rowid
        """)
        logger.info(f"Travelogues Database: Publication list returned {len(rows)} rows")
        return rows

    async def get_decade_rows(self) -> List[Dict[str, Any]]:
        """One row per publication x contributing traveler with the travel start year, ordered by title"""
        rows = await self._fetch_all("""
            SELECT p.id, trim(p.title) title, p.summary, p.travel_dates, p.travel_year_min,
                   t.id traveler_id, t.name traveler_name, c.type contribution_type
            FROM contributions c
            INNER JOIN publications p ON p.id = c.publication_id
            INNER JOIN travelers t ON t.id = c.traveler_id
            ORDER BY title COLLATE NOCASE ASC, p.id, c.rowid
        """)
        logger.info(f"Travelogues Database: Decade list returned {len(rows)} rows")
        return rows

    async def get_traveler_rows(self) -> List[Dict[str, Any]]:
        """One row per traveler x contributed publication; travelers without any get one row of NULLs"""
        rows = await self._fetch_all("""
            SELECT t.id, t.name, t.nationality,
                   c.type contribution_type, p.id publication_id,
                   p.title publication_title
            FROM travelers t
            LEFT JOIN contributions c ON t.id = c.traveler_id
            LEFT JOIN publications p ON c.publication_id = p.id
            ORDER BY t.name COLLATE NOCASE ASC, t.id, p.title COLLATE NOCASE ASC
        """)
        logger.info(f"Travelogues Database: Traveler list returned {len(rows)} rows")
        return rows

    async def get_search_options(self) -> Dict[str, List[str]]:
        """
        Get the distinct values offered by the advanced search form

        Returns:
            Dictionary with author_roles, genders and nationalities, each sorted
            case-insensitively without NULLs
        """
        roles = await self._fetch_all(
            "SELECT DISTINCT type value FROM contributions ORDER BY value COLLATE NOCASE")
        genders = await self._fetch_all(
            "SELECT DISTINCT gender value FROM travelers ORDER BY value COLLATE NOCASE ASC")
        nationalities = await self._fetch_all(
            "SELECT DISTINCT trim(REPLACE(nationality, '(?)', '')) value FROM travelers ORDER BY value COLLATE NOCASE")
        return {
            "author_roles": _flatten(roles),
            "genders": _flatten(genders),
            "nationalities": _flatten(nationalities),
        }

    async def search_rows(
        self,
        title: Optional[str] = None,
        summary: Optional[str] = None,
        traveler: Optional[str] = None,
        nationality: Optional[str] = None,
        gender: Optional[str] = None,
        roles: Optional[List[str]] = None,
        readable: bool = False,
    ) -> List[Dict[str, Any]]:
        """
        Run the publication search

        Full-text arguments must already be sanitized match expressions. A
        publication qualifies when one of its contributors matches all traveler
        criteria; every contributor of a qualifying publication is returned.

        Args:
            title: Match expression for publication titles
            summary: Match expression for publication summaries
            traveler: Match expression for traveler names
            nationality: Match expression for traveler nationalities
            gender: Exact traveler gender
            roles: Contribution types the matching traveler must have one of
            readable: Only publications with an IIIF manifest

        Returns:
            One row per publication x contributing traveler, ordered by title,
            including travel_year_min and travel_year_max
        """
        params = {
            "title": title,
            "summary": summary,
            "traveler": traveler,
            "nationality": nationality,
            "gender": gender,
            "roles": json.dumps(roles) if roles else None,
            "readable": 1 if readable else None,
        }
        rows = await self._fetch_all(SEARCH_QUERY, params)
        logger.info(f"Travelogues Database: Search returned {len(rows)} rows")
        return rows

    async def get_counts(self) -> Dict[str, int]:
        """Row counts of the catalog tables"""
        counts = {}
        for table in ("publications", "travelers", "contributions"):
            row = await self._fetch_one(f"SELECT COUNT(*) count FROM {table}")
            counts[table] = row["count"] if row else 0
        return counts

    async def create_schema(self) -> None:
        """Create the catalog tables and full-text indexes if missing"""
        if self.connection is None:
            raise DatabaseConnectionError("Database not connected")
        for statement in SCHEMA_STATEMENTS:
            await self.connection.execute(statement)
        await self.connection.commit()
        logger.info(f"Travelogues Database: Schema ready in {self.db_path}")

    async def import_dataset(self, dataset: Mapping[str, List[Mapping[str, Any]]]) -> Dict[str, int]:
        """
        Insert publications, travelers and contributions, then rebuild the full-text indexes

        Args:
            dataset: Mapping with "publications", "travelers" and "contributions" lists

        Returns:
            Number of rows imported per table

        Raises:
            DataValidationError: If a record misses a required field
        """
        if self.connection is None:
            raise DatabaseConnectionError("Database not connected")

        tables = [
            ("publications", PUBLICATION_FIELDS, ("id", "title")),
            ("travelers", TRAVELER_FIELDS, ("id", "name")),
            ("contributions", CONTRIBUTION_FIELDS, CONTRIBUTION_FIELDS),
        ]
        imported = {}
        try:
            for table, fields, required in tables:
                records = dataset.get(table) or []
                values = []
                for record in records:
                    missing = [name for name in required if record.get(name) is None]
                    if missing:
                        raise DataValidationError(f"{table} record {dict(record)} is missing {', '.join(missing)}")
                    values.append(tuple(record.get(name) for name in fields))
                placeholders = ", ".join("?" for _ in fields)
                await self.connection.executemany(
                    f"INSERT OR REPLACE INTO {table} ({', '.join(fields)}) VALUES ({placeholders})",
                    values,
                )
                imported[table] = len(values)
            await self.connection.execute("INSERT INTO publicationsfts(publicationsfts) VALUES('rebuild')")
            await self.connection.execute("INSERT INTO travelersfts(travelersfts) VALUES('rebuild')")
            await self.connection.commit()
        except DataValidationError:
            await self.connection.rollback()
            raise
        except Exception as e:
            await self.connection.rollback()
            logger.error(f"Travelogues Database: Import failed: {e}")
            raise DatabaseConnectionError(f"Import failed: {e}") from e

        logger.info(f"Travelogues Database: Imported {imported}")
        return imported


def _flatten(rows: List[Dict[str, Any]]) -> List[str]:
    """Keep the single column of each row, dropping NULLs, blanks and duplicates"""
    values = []
    for row in rows:
        value = row["value"]
        if value not in (None, "") and value not in values:
            values.append(value)
    return values
