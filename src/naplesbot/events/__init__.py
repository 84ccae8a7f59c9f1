"""Gateway event modules discovered at startup."""
