"""Top-level dompile commands (auto-discovered)."""
