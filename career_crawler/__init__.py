"""
Career Crawler
Resumable Transfermarkt crawler that turns raw transfer logs into
season-indexed club affiliations.
"""

__version__ = "1.0.0"

# NOTE:
# Keep "import career_crawler" free of side effects (no settings, no Playwright)
# so unit tests can import the pure domain modules cheaply.

__all__ = []
