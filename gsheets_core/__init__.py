"""
Google Sheets resilience and addressing core.

- core.a1: A1 notation <-> row/column conversion
- core.matching: search and smart-replace over value grids
- utils.rate_limiter / utils.retry: admission control and retry with backoff
- services: SheetsService wrapping the Google API resources
"""

__version__ = "1.0.0"
