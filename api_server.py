#!/usr/bin/env python3
"""
FastAPI server for the Travelogues catalog
Serves the JSON API over the Travelogues database and the HTML pages that consume it
"""

import logging
import traceback
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, List, Optional

from fastapi import Depends, FastAPI, Query, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse
from fastapi.staticfiles import StaticFiles
from pydantic import BaseModel
from starlette.exceptions import HTTPException as StarletteHTTPException
import uvicorn

from config.settings import TraveloguesConfig
from travelogues import catalog
from travelogues.database import DatabaseConnectionError, DatabaseManager
from travelogues.errors import InvalidSearchParameterError, TraveloguesError

config = TraveloguesConfig()

logging.basicConfig(
    level=config.log_level,
    format='%(asctime)s - Travelogues API - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

VIEWS_DIR = Path(__file__).parent / "travelogues" / "views"
PAGES_DIR = VIEWS_DIR / "pages"

# Page name -> HTML, loaded once at import
PAGE_SHELLS = {page.stem: page.read_text(encoding="utf-8") for page in PAGES_DIR.glob("*.html")}


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = app.dependency_overrides.get(get_settings, get_settings)()
    logger.info(f"Travelogues API: Starting up with database {settings.database_path}")
    if not settings.database_exists:
        logger.warning(f"Travelogues API: Database {settings.database_path} not found - API requests will fail")
        logger.warning("   Run 'travelogues init-db' and 'travelogues load-json' to create one")
    yield
    logger.info("Travelogues API: Shutting down")


app = FastAPI(
    title="Travelogues API",
    description="Catalog and search API for a digitized archive of historical travel publications",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.cors_origins,
    allow_credentials=True,
    allow_methods=["GET"],
    allow_headers=["*"],
)


# Response models
class Contributor(BaseModel):
    """A traveler as listed under a publication"""
    id: int
    name: str
    type: str


class ContributorDetail(Contributor):
    nationality: Optional[str] = None
    gender: Optional[str] = None


class PublicationListItem(BaseModel):
    id: int
    title: str
    summary: Optional[str] = None
    travelers: List[Contributor]


class PublicationDetail(BaseModel):
    """Full publication record with every contributing traveler"""
    id: int
    title: str
    travel_dates: Optional[str] = None
    publisher: Optional[str] = None
    publication_place: Optional[str] = None
    publication_date: Optional[str] = None
    publisher_misc: Optional[str] = None
    summary: Optional[str] = None
    url: Optional[str] = None
    iiif: Optional[str] = None
    travelers: List[ContributorDetail]


class DecadePublication(PublicationListItem):
    travel_dates: Optional[str] = None


class Decade(BaseModel):
    """Publications whose travels start in the same decade; decade is None when unknown"""
    decade: Optional[int] = None
    publications: List[DecadePublication]


class TravelerPublication(BaseModel):
    id: int
    title: str
    contribution: str


class TravelerListItem(BaseModel):
    id: int
    name: str
    nationality: Optional[str] = None
    publications: List[TravelerPublication]


class SearchPageData(BaseModel):
    """Values offered by the advanced search form"""
    author_roles: List[str]
    genders: List[str]
    nationalities: List[str]


class SearchResult(BaseModel):
    id: int
    title: str
    travel_dates: Optional[str] = None
    travelers: List[Contributor]


# Dependencies
def get_settings() -> TraveloguesConfig:
    return config


async def get_database(settings: TraveloguesConfig = Depends(get_settings)) -> AsyncIterator[DatabaseManager]:
    """Open a read-only database handle for the duration of one request"""
    db = DatabaseManager(settings.database_path, read_only=True)
    await db.connect()
    try:
        yield db
    finally:
        await db.close()


def _parse_year(value: Optional[str], name: str) -> Optional[int]:
    if value is None or value.strip() == "":
        return None
    try:
        return int(value)
    except ValueError:
        raise InvalidSearchParameterError(f"{name} must be a year, got '{value}'")


# Error handlers
@app.exception_handler(TraveloguesError)
async def handle_travelogues_error(request: Request, exc: TraveloguesError):
    logger.warning(f"Travelogues API: {request.url.path} - {exc.status_code} {exc.message}")
    return JSONResponse(exc.to_response(), status_code=exc.status_code)


@app.exception_handler(DatabaseConnectionError)
async def handle_database_error(request: Request, exc: DatabaseConnectionError):
    logger.error(f"Travelogues API: Database error on {request.url.path}: {exc}")
    return JSONResponse({"status": 500, "message": "Internal server error"}, status_code=500)


@app.exception_handler(Exception)
async def handle_unexpected_error(request: Request, exc: Exception):
    logger.error(f"Travelogues API: Unexpected error on {request.url.path}: {exc}")
    logger.error(f"Travelogues API: Full traceback: {traceback.format_exc()}")
    return JSONResponse({"status": 500, "message": "Internal server error"}, status_code=500)


@app.exception_handler(StarletteHTTPException)
async def handle_http_error(request: Request, exc: StarletteHTTPException):
    if exc.status_code == 404 and not request.url.path.startswith("/api/"):
        return _render_page("404", status_code=404)
    return JSONResponse({"status": exc.status_code, "message": exc.detail}, status_code=exc.status_code)


# API endpoints
@app.get("/health")
async def health_check(settings: TraveloguesConfig = Depends(get_settings)):
    """Health check reporting whether the database can be queried"""
    health_obj = {
        "status": "unhealthy",
        "service": "Travelogues API",
        "database": {
            "connected": False,
            "publications": None,
            "travelers": None,
            "contributions": None,
            "error": None
        }
    }
    if not settings.database_exists:
        health_obj["database"]["error"] = "Database file not found"
        return JSONResponse(health_obj, status_code=503)
    try:
        async with DatabaseManager(settings.database_path, read_only=True) as db:
            counts = await db.get_counts()
        health_obj["database"].update(connected=True, **counts)
        health_obj["status"] = "healthy" if counts["publications"] > 0 else "empty"
    except DatabaseConnectionError as e:
        health_obj["database"]["error"] = str(e)
        return JSONResponse(health_obj, status_code=503)
    return health_obj


@app.get("/api/publications/{publication_id}", response_model=PublicationDetail)
async def get_publication(publication_id: int, db: DatabaseManager = Depends(get_database)):
    """Get a publication's details and contributing travelers"""
    logger.info(f"Travelogues API: Publication detail requested for ID {publication_id}")
    return await catalog.get_publication(db, publication_id)


@app.get("/api/publications", response_model=List[PublicationListItem])
async def list_publications(
    response: Response,
    page: Optional[int] = Query(None, ge=1, description="Page number (1-based); all publications when omitted"),
    page_size: Optional[int] = Query(None, ge=1, le=500, description="Number of publications per page"),
    db: DatabaseManager = Depends(get_database),
    settings: TraveloguesConfig = Depends(get_settings),
):
    """List publications alphabetically by title with their travelers"""
    publications = await catalog.list_publications(db)
    response.headers["X-Total-Count"] = str(len(publications))
    if page is None:
        return publications
    page_size = page_size or settings.default_page_size
    start = (page - 1) * page_size
    logger.info(f"Travelogues API: Publications page {page} (size {page_size}) of {len(publications)}")
    return publications[start:start + page_size]


@app.get("/api/decades", response_model=List[Decade])
async def list_decades(db: DatabaseManager = Depends(get_database)):
    """List decades, unknown first, with the publications whose travels start in each"""
    return await catalog.list_decades(db)


@app.get("/api/travelers", response_model=List[TravelerListItem])
async def list_travelers(db: DatabaseManager = Depends(get_database)):
    """List travelers alphabetically by name with their publications"""
    return await catalog.list_travelers(db)


@app.get("/api/searchpagedata", response_model=SearchPageData)
async def search_page_data(db: DatabaseManager = Depends(get_database)):
    """Author roles, genders and nationalities for the advanced search form"""
    return await db.get_search_options()


@app.get("/api/search", response_model=List[SearchResult])
async def search(
    title: Optional[str] = Query(None, description="Match titles containing all of these words"),
    summary: Optional[str] = Query(None, description="Match summaries containing all of these words"),
    traveler: Optional[str] = Query(None, description="Match traveler names containing all of these words"),
    nationality: Optional[str] = Query(None, description="Match travelers with this nationality"),
    gender: Optional[str] = Query(None, description="Match travelers with this gender"),
    role: Optional[List[str]] = Query(None, description="Match travelers with any of these roles"),
    traveldate_min: Optional[str] = Query(None, alias="traveldate-min", description="Travels on or after this year"),
    traveldate_max: Optional[str] = Query(None, alias="traveldate-max", description="Travels on or before this year"),
    include_unknown: Optional[str] = Query(None, alias="include-unknown", description='"on" to include unknown end dates'),
    readable: Optional[str] = Query(None, description="Any value to only match publications readable in the app"),
    db: DatabaseManager = Depends(get_database),
):
    """Search publications by text, traveler and travel date criteria"""
    logger.info(f"Travelogues API: Search called - title: '{title}', traveler: '{traveler}', roles: {role}")
    return await catalog.search_publications(
        db,
        title=title,
        summary=summary,
        traveler=traveler,
        nationality=nationality,
        gender=gender,
        roles=role,
        search_min=_parse_year(traveldate_min, "traveldate-min"),
        search_max=_parse_year(traveldate_max, "traveldate-max"),
        include_unknown=include_unknown == "on",
        readable=bool(readable),
    )


# Pages
def _render_page(name: str, status_code: int = 200) -> HTMLResponse:
    return HTMLResponse(content=PAGE_SHELLS[name], status_code=status_code)


@app.get("/", response_class=HTMLResponse, include_in_schema=False)
async def home_page():
    return _render_page("home")


@app.get("/publications-list", response_class=HTMLResponse, include_in_schema=False)
async def publications_list_page():
    return _render_page("publications-list")


@app.get("/travelers-list", response_class=HTMLResponse, include_in_schema=False)
async def travelers_list_page():
    return _render_page("travelers-list")


@app.get("/decades-list", response_class=HTMLResponse, include_in_schema=False)
async def decades_list_page():
    return _render_page("decades-list")


@app.get("/publication", response_class=HTMLResponse, include_in_schema=False)
async def publication_page():
    return _render_page("publication")


@app.get("/search", response_class=HTMLResponse, include_in_schema=False)
async def search_page():
    return _render_page("search")


app.mount("/js", StaticFiles(directory=str(VIEWS_DIR / "js")), name="js")
app.mount("/css", StaticFiles(directory=str(VIEWS_DIR / "css")), name="css")


def run(host: Optional[str] = None, port: Optional[int] = None, reload: bool = False) -> None:
    """Run the server with uvicorn"""
    uvicorn.run(
        "api_server:app",
        host=host or config.host,
        port=port or config.port,
        reload=reload,
        log_level=config.log_level.lower()
    )


if __name__ == "__main__":
    run()
