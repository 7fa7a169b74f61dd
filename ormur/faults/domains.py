"""
Ormur Faults - Domain-specific fault types.

Provides the two fault kinds the model layer raises:
- CONFIG faults: the model class (or its store wiring) is unusable
- MODEL faults: a value failed a column rule and the write was rejected
"""

from typing import Any, Optional
from .core import Fault, FaultDomain, Severity


# ============================================================================
# CONFIG Faults
# ============================================================================

class ConfigurationFault(Fault):
    """
    A model class or store is misconfigured.

    Not recoverable per instance: it points at a programming error in the
    class definition and should reach top-level error reporting.
    """

    def __init__(
        self,
        message: str,
        *,
        code: str = "MODEL_MISCONFIGURED",
        model: Optional[str] = None,
        metadata: Optional[dict[str, Any]] = None,
    ):
        meta = dict(metadata or {})
        if model is not None:
            meta["model"] = model
        super().__init__(
            code=code,
            message=message,
            domain=FaultDomain.CONFIG,
            severity=Severity.FATAL,
            retryable=False,
            public=False,
            metadata=meta,
        )


class StoreUrlInvalidFault(ConfigurationFault):
    """Store URL scheme is not recognized."""

    def __init__(self, url: str, reason: str, **kwargs):
        super().__init__(
            f"Store URL '{url}' is invalid: {reason}",
            code="STORE_URL_INVALID",
            metadata={"url": url, "reason": reason, **kwargs.get("metadata", {})},
        )


# ============================================================================
# MODEL Faults
# ============================================================================

class ValidationFault(Fault):
    """
    A column rule failed during ``validate()`` or the pre-save pipeline.

    Recoverable: callers catch it, inspect the message and re-prompt or
    reject the write.
    """

    def __init__(
        self,
        column: str,
        message: str,
        *,
        metadata: Optional[dict[str, Any]] = None,
    ):
        self.column = column
        super().__init__(
            code="VALIDATION_FAILED",
            message=message,
            domain=FaultDomain.MODEL,
            severity=Severity.WARN,
            retryable=False,
            public=True,
            metadata={"column": column, **(metadata or {})},
        )


# ── Backward-compatible aliases ──────────────────────────────────────────────
ConfigurationError = ConfigurationFault
ValidationError = ValidationFault
