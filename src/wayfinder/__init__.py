"""
WAYFINDER - Forensic extraction of AlpineQuest waypoints, tracks, routes,
sets and areas.
"""

# WAYFINDER Version Information
WAYFINDER_VERSION = "0.3.0"
WAYFINDER_BUILD_DATE = "October 19 2026"

__version__ = WAYFINDER_VERSION
