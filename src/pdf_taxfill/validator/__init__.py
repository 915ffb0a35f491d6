"""Annotation validation."""
