"""API routes package initialization."""
from ivtracker.api.routes import health, volatility

__all__ = ["health", "volatility"]
