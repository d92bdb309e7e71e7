"""
Kalshi Quick-Trade Harness
==========================

Places a limit buy on the first open market of a Kalshi series,
waits a few seconds, then sells the position back.

IMPORTANT: Orders are sent live. Configure .env and point
KALSHI_API_BASE at the demo API before trying it!
"""

__version__ = "1.0.0"
__author__ = "Kalshi Quick Trade"
