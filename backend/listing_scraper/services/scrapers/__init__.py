"""Provider extraction adapters."""

from listing_scraper.services.scrapers.base_scraper import BaseScraper
from listing_scraper.services.scrapers.realtor_scraper import RealtorScraper
from listing_scraper.services.scrapers.redfin_scraper import RedfinScraper
from listing_scraper.services.scrapers.registry import ScraperRegistry
from listing_scraper.services.scrapers.zillow_scraper import ZillowScraper

__all__ = [
    "BaseScraper",
    "ZillowScraper",
    "RedfinScraper",
    "RealtorScraper",
    "ScraperRegistry",
]
