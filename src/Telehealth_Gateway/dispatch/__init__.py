"""Optimistic mutation dispatch."""

from .mutations import BulkFailure, BulkResult, MutationDispatcher

__all__ = ["BulkFailure", "BulkResult", "MutationDispatcher"]
