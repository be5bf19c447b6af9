"""LogBridge: log4j XML event receiver and normalizer."""

__version__ = "0.1.0"
