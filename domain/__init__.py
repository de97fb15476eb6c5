"""Pure domain model for the point-of-sale system (no I/O)."""
