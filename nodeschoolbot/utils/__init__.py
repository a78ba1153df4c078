"""Shared utilities: structured logging setup and pooled HTTP clients."""
