"""Configuration, logging, error and normalization helpers."""
