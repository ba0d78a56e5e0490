"""
Monitoring Module
Crawl-Status Snapshot für den Status-Server
"""

from .status import CrawlStatus, StatusSnapshot

__all__ = ["CrawlStatus", "StatusSnapshot"]
