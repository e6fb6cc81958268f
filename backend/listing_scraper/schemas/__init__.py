from listing_scraper.schemas.listing import Listing
from listing_scraper.schemas.search import ProxyConfig, SearchQuery, SearchResponse

__all__ = [
    "Listing",
    "ProxyConfig",
    "SearchQuery",
    "SearchResponse",
]
