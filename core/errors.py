from __future__ import annotations


class QuoteError(Exception):
    """Base class for errors raised by the cost engine."""


class NotFoundError(QuoteError, LookupError):
    """An order or root product the caller asked for does not exist."""

    def __init__(self, kind: str, record_id: str):
        self.kind = kind
        self.record_id = record_id
        super().__init__(f"{kind} '{record_id}' not found")


class DependencyError(QuoteError):
    """The graph store (or another upstream service) is unreachable. Safe to retry."""
