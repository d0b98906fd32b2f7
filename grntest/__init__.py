"""Configuration and test selection front end for the Groonga test harness."""

__version__ = "1.0.0"
