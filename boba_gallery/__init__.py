"""
Boba Drops Gallery - static-site gallery for Boba Drops website submissions.

This package fetches submission records from the Airtable proxy, optimizes
their screenshots through the Hack Club CDN and renders the gallery grid,
either as a static page at build time or batch by batch for infinite scroll.
"""

__version__ = "1.0.0"
__author__ = "Development Team"
__email__ = "dev@example.com"
