"""Script Sentinel — risk tiers for the third-party scripts on a web page."""

__version__ = "1.0.0"
