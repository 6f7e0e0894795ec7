"""Core rendering engine, configuration and shared utilities."""
