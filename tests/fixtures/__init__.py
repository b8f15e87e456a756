"""Test fixtures for notion-mirror."""
