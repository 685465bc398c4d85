"""Core models, interfaces, and errors shared across the analytics engine."""
