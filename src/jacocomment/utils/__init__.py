"""Utility helpers for jacocomment."""
