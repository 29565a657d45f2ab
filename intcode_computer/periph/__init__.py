"""I/O channels for the Computer."""
