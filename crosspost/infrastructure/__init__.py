"""Logging and strategy wiring."""
