"""Multi-tenant Trakt credential gateway."""

__version__ = "0.1.0"
