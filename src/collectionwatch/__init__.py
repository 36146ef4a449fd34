"""collectionwatch - collection tracking and web service format negotiation."""

__version__ = "0.1.0"
