"""Annotation wire models, render options and results."""
