"""Hex math, validation, terrain generation and map previews."""
