"""
Career Crawler - Hauptanwendung

Zentraler Einstiegspunkt: `python main.py run` entspricht `career-crawler run`.
"""

import asyncio
import sys

# Windows-specific asyncio policy to avoid 'Event loop is closed' and transport warnings
if sys.platform.startswith("win"):
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())

from career_crawler.apps.cli import main

if __name__ == "__main__":
    main()
