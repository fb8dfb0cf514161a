"""Derived views: read-only views for UI consumption.

UI must ONLY read from these views, never raw device rows.
Items reference devices by id; full records are fetched on demand.
"""
