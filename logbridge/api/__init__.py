"""LogBridge HTTP API."""
