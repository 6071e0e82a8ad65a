"""Errors raised by catalog services."""

from __future__ import annotations


class StorefrontAPIError(RuntimeError):
    """The storefront API could not be reached or answered with errors."""


class CollectionNotFoundError(LookupError):
    """No collection exists for the requested handle."""

    def __init__(self, handle: str) -> None:
        super().__init__(f"Collection {handle} not found")
        self.handle = handle


class StaleResultError(RuntimeError):
    """A result was computed for a request that has since been superseded."""
