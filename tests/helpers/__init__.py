"""Test helpers for notion-mirror."""
