"""Bundled JSON contracts and their validators."""
