"""
Tests for the DatabaseManager queries and the catalog functions built on them
"""

import pytest
import pytest_asyncio

from travelogues import catalog
from travelogues.database import DatabaseConnectionError, DatabaseManager, DataValidationError
from travelogues.errors import PublicationNotFoundError


@pytest_asyncio.fixture
async def db(database_path):
    async with DatabaseManager(database_path, read_only=True) as manager:
        yield manager


class TestDatabaseManager:

    @pytest.mark.asyncio
    async def test_counts(self, db):
        assert await db.get_counts() == {"publications": 7, "travelers": 6, "contributions": 8}

    @pytest.mark.asyncio
    async def test_publication_rows_one_per_contribution(self, db):
        rows = await db.get_publication_rows()
        assert len(rows) == 8
        assert rows[0]["title"] == "A Journey up the Nile"
        assert {"id", "title", "summary", "traveler_id", "traveler_name", "contribution_type"} == set(rows[0])

    @pytest.mark.asyncio
    async def test_publication_without_contributions_not_found(self, db):
        assert await db.get_publication(6) is None

    @pytest.mark.asyncio
    async def test_search_options(self, db):
        assert await db.get_search_options() == {
            "author_roles": ["Author", "Editor", "Illustrator"],
            "genders": ["Female", "Male"],
            "nationalities": ["British", "Danish", "French"],
        }

    @pytest.mark.asyncio
    async def test_nationality_options_merge_uncertain_markers(self, db):
        # "French (?)" and "French" are both in the data
        nationalities = (await db.get_search_options())["nationalities"]
        assert nationalities.count("French") == 1

    @pytest.mark.asyncio
    async def test_read_only_missing_file(self, tmp_path):
        manager = DatabaseManager(tmp_path / "missing.db", read_only=True)
        with pytest.raises(DatabaseConnectionError):
            await manager.connect()
        assert not (tmp_path / "missing.db").exists()

    @pytest.mark.asyncio
    async def test_query_failure_is_wrapped(self, tmp_path):
        async with DatabaseManager(tmp_path / "empty.db") as manager:
            with pytest.raises(DatabaseConnectionError):
                await manager.get_publication_rows()

    @pytest.mark.asyncio
    async def test_import_rejects_incomplete_records(self, tmp_path):
        async with DatabaseManager(tmp_path / "import.db") as manager:
            await manager.create_schema()
            with pytest.raises(DataValidationError):
                await manager.import_dataset({"travelers": [{"id": 1, "name": None}]})
            assert (await manager.get_counts())["travelers"] == 0


class TestCatalog:

    @pytest.mark.asyncio
    async def test_get_publication_with_travelers(self, db):
        publication = await catalog.get_publication(db, 1)
        assert publication["title"] == "A Journey up the Nile"
        assert publication["iiif"].endswith("manifest.json")
        assert publication["travelers"] == [
            {"id": 1, "name": "Richard Pococke", "nationality": "British", "gender": "Male", "type": "Author"},
            {"id": 2, "name": "Frederick Norden", "nationality": "Danish", "gender": "Male", "type": "Illustrator"},
        ]

    @pytest.mark.asyncio
    async def test_get_publication_missing(self, db):
        with pytest.raises(PublicationNotFoundError) as excinfo:
            await catalog.get_publication(db, 999)
        assert "999" in excinfo.value.message
        assert excinfo.value.status_code == 404

    @pytest.mark.asyncio
    async def test_list_publications_sorted_and_trimmed(self, db):
        publications = await catalog.list_publications(db)
        assert [p["title"] for p in publications] == [
            "A Journey up the Nile",
            "an Account of Thebes",
            "Letters from the Nile",
            "Notes of an Unknown Voyage",
            "Sketches of Cairo",
            "Travels in Egypt and Nubia",
        ]
        assert all(p["travelers"] for p in publications)

    @pytest.mark.asyncio
    async def test_list_decades(self, db):
        decades = await catalog.list_decades(db)
        assert [d["decade"] for d in decades] == [None, 178, 179, 180, 181]
        assert [p["title"] for p in decades[2]["publications"]] == ["Sketches of Cairo", "Travels in Egypt and Nubia"]

    @pytest.mark.asyncio
    async def test_list_travelers(self, db):
        travelers = await catalog.list_travelers(db)
        assert [t["name"] for t in travelers] == [
            "Amelia Edwards",
            "de Volney",
            "Frederick Norden",
            "Jean-Baptiste Lepère",
            "Lonely Traveler",
            "Richard Pococke",
        ]
        lonely = travelers[4]
        assert lonely["publications"] == []
        norden = travelers[2]
        assert norden["publications"] == [
            {"id": 1, "title": "A Journey up the Nile", "contribution": "Illustrator"},
            {"id": 2, "title": "Travels in Egypt and Nubia", "contribution": "Author"},
        ]

    @pytest.mark.asyncio
    async def test_search_by_title(self, db):
        results = await catalog.search_publications(db, title="Nile")
        assert [p["title"] for p in results] == ["A Journey up the Nile", "Letters from the Nile"]
        assert set(results[0]) == {"id", "title", "travel_dates", "travelers"}

    @pytest.mark.asyncio
    async def test_search_results_sorted_ignoring_case(self, db):
        results = await catalog.search_publications(db, nationality="French")
        assert [p["title"] for p in results] == [
            "an Account of Thebes",
            "Letters from the Nile",
            "Sketches of Cairo",
        ]

    @pytest.mark.asyncio
    async def test_search_returns_every_contributor(self, db):
        results = await catalog.search_publications(db, traveler="Norden", roles=["Illustrator"])
        assert [p["id"] for p in results] == [1]
        assert [t["name"] for t in results[0]["travelers"]] == ["Richard Pococke", "Frederick Norden"]

    @pytest.mark.asyncio
    async def test_search_empty_strings_mean_no_filter(self, db):
        results = await catalog.search_publications(
            db, title="", summary="", traveler="", nationality="", gender="", roles=[""]
        )
        assert len(results) == 6
