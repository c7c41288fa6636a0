"""Infrastructure adapters: persistence and external services."""
