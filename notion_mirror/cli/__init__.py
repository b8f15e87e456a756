"""Command-line interface for notion-mirror."""
