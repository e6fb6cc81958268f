class ListingScraperError(Exception):
    """Base exception for the listing scraper."""

    pass


class MissingLocationError(ListingScraperError):
    """No zip, city+state, or free-text query was supplied."""

    def __init__(self, message: str = "missing location (city/state or zip or q)") -> None:
        super().__init__(message)


class UnauthorizedError(ListingScraperError):
    """Bearer token absent or wrong."""

    pass


class UnknownProviderError(ListingScraperError):
    pass


class RegionLookupError(ListingScraperError):
    """Autocomplete lookup failed; callers degrade to the heuristic URL."""

    pass


class NavigationError(ListingScraperError):
    """Page navigation failed after all attempts. Recoverable."""

    pass


class ScrapeError(ListingScraperError):
    """Unrecoverable failure anywhere in the scrape pipeline."""

    pass
