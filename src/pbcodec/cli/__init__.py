"""Command line interface for pbcodec."""
