"""
gmaps-scraper Test Suite

Structure:
- unit/: Fast, isolated unit tests (browser replaced by FakePage)
- conftest.py: Shared fixtures and markers
"""
