"""Growable machine memory."""
