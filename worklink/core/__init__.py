"""Core infrastructure: configuration, logging, errors, geometry, store and scheduler."""
