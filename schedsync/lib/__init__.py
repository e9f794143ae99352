"""Shared helpers for configuration and GitHub access."""
