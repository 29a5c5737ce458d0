"""Configuration loading and debug output helpers."""
