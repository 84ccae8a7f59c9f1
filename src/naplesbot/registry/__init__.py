"""Command and event registries and the plugin loader that feeds them."""
