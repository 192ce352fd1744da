"""Assign chunks and sentences to physical/printed page pairs."""
