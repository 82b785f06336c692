"""Bilingual subtitle generation package."""
