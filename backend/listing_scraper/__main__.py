import uvicorn

from listing_scraper.config import settings

if __name__ == "__main__":
    uvicorn.run("listing_scraper.main:app", host="0.0.0.0", port=settings.port)
