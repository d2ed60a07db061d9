"""Persistence for indexed domain objects."""
