from __future__ import annotations


class ChainError(Exception):
    """Unrecoverable chain failure: bad configuration or misuse of an executor."""


class ConditionError(ValueError):
    """A gating expression could not be tokenized, parsed or evaluated."""


class DispatchError(Exception):
    """Raised by a dispatch capability to report that a call did not complete."""
