"""Test package for attribution_console."""
