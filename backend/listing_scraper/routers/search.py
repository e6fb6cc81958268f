from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from listing_scraper.schemas.search import SearchResponse
from listing_scraper.services.search_service import SearchService
from listing_scraper.utils.exceptions import MissingLocationError, ScrapeError

router = APIRouter()


def get_search_service(request: Request) -> SearchService:
    return request.app.state.search_service


@router.get("/search", response_model=SearchResponse, response_model_exclude_none=True)
async def search_listings(
    request: Request,
    service: SearchService = Depends(get_search_service),
) -> SearchResponse | JSONResponse:
    """Scrape listings for ``city``/``state``, ``zip`` or ``q`` from ``provider``."""
    try:
        result = await service.search(request.query_params)
    except MissingLocationError as e:
        return JSONResponse(status_code=400, content={"error": str(e)})
    except ScrapeError as e:
        return JSONResponse(
            status_code=500, content={"error": "scrape failed", "detail": str(e)}
        )

    return SearchResponse(
        results=result.results,
        source=result.source,
        cached=True if result.cached else None,
        proxy=result.proxy_used,
        diagnostics=result.diagnostics,
    )
