"""Endpoint modules for the ANT REST API (internal)."""
