"""Multi-tenant casal record keeping API."""

__version__ = "0.1.0"
