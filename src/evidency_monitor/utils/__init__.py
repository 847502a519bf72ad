"""Small shared helpers (exit codes, JSON normalization)."""
