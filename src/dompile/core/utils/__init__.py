"""Shared helpers (merging, YAML IO, logging setup)."""
