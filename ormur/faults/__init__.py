"""
Ormur Faults - typed fault signals for the model layer.

Core exports:
- Fault: Base fault class
- FaultDomain: Domain enumeration
- Severity: Severity levels
- ConfigurationFault / ConfigurationError: unusable model class or store
- ValidationFault / ValidationError: rejected write
"""

from .core import (
    DOMAIN_DEFAULTS,
    Fault,
    FaultDomain,
    Severity,
)

from .domains import (
    ConfigurationError,
    ConfigurationFault,
    StoreUrlInvalidFault,
    ValidationError,
    ValidationFault,
)

__all__ = [
    # Core types
    "Fault",
    "FaultDomain",
    "Severity",
    "DOMAIN_DEFAULTS",
    # Domain faults
    "ConfigurationFault",
    "ConfigurationError",
    "StoreUrlInvalidFault",
    "ValidationFault",
    "ValidationError",
]
