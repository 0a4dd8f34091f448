"""signaldesk: news signal pipeline and multi-agent investment analysis."""

__version__ = "0.1.0"
