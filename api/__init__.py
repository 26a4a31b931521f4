"""MisIntel HTTP API."""
