"""Shared utilities for the resource gateway."""
