"""Spectrum Sync backend application package."""
