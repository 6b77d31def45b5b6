"""Ports, errors, shared key-value storage and application state."""
