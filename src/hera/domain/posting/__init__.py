"""Posting domain: from finance events to balanced GL journals."""
