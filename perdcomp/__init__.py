"""
PER/DCOMP Tracker - Source Package

A local record keeper for federal tax-credit filings (PER/DCOMP):
import from spreadsheets and XML, track settlement, filter, summarize
and export.

DESIGN PRINCIPLES:
1. One collection, one source of truth (the repository)
2. Imports are lenient, manual entries are validated
3. Storage failures warn, they never block
4. Every change is auditable
5. Storage and extraction services are swappable
"""

__version__ = "1.0.0"
__author__ = "PER/DCOMP Tracker Team"
