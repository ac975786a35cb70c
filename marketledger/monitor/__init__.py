"""Terminal views of marketplace state (Rich)."""

from marketledger.monitor.renderer import MarketRenderer

__all__ = ["MarketRenderer"]
