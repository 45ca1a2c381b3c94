"""Locale file discovery, parsing and catalog storage."""
