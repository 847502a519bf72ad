"""JSON schema contracts for emitted artifacts."""
