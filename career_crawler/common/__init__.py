"""
Common Module
Gemeinsame Hilfsfunktionen: Logging, Parsing, Retry, Term-Mapping, Playwright
"""
