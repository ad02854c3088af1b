"""Bundled sample data documents."""
