"""Callout form schema, answer keys and validation."""
