"""Core collection pipeline."""
