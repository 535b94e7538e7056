"""Configuration package (settings constants)."""
