"""
gmaps-scraper: business listings from map search results.

Components:
- core: configuration, logging, exceptions, failure records
- utils: URL identity helpers, bounded retry
- models: Entry, Review, Coordinates
- crawler: page-state extraction, scroll pagination, reviews, emails
- jobs: search -> place -> email fan-out
- runner: dedup, completion monitor, orchestrator, writers, CLI
"""

__version__ = "0.1.0"
