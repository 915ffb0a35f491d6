"""Fluent annotation builder."""
