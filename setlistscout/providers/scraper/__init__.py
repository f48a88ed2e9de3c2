"""Tour-list providers backed by the tour scraper microservice."""

from setlistscout.providers.scraper.tour_scraper_provider import TourScraperProvider

__all__ = ["TourScraperProvider"]
