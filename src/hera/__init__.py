"""HERA auto-posting engine."""
