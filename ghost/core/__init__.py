"""Core models, errors and request outcomes."""
