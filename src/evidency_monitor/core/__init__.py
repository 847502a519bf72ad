"""Core pipeline: configuration, file discovery, orchestration."""
