"""Standalone diagnostic entry points."""
