"""Collaborators for the whisk catalog integration suite."""

__version__ = "1.0.0"
