"""
PowerBill - Source Package

A record manager for electricity service accounts ("meters") grouped
under homes and apartments, with per-meter tenant contact details and
the latest billing snapshot for each meter.

PRINCIPLES:
1. One store owns the data and is the only writer of persisted state
2. Every mutation is all-or-nothing
3. Imports replace the whole data set or change nothing
4. Persistence problems never make the app unusable
"""

__version__ = "1.0.0"
__author__ = "PowerBill Team"
