"""Application layer: use cases orchestrating the posting domain."""
