"""Exception hierarchy for EDIFACT INVOIC validation and generation."""

from typing import Any, Dict, Optional


class EDIFACTBaseError(Exception):
    """Base error carrying a stable code and structured details"""

    default_code = "EDIFACT_001"

    def __init__(self, message: str, code: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        self.code = code or self.default_code
        self.message = message
        self.details = details or {}
        super().__init__(f"{self.code}: {message}")


class EDIFACTValidationError(EDIFACTBaseError):
    """Raised when the invoice record breaks a schema or business rule"""

    default_code = "VALID_001"


class EDIFACTGenerationError(EDIFACTBaseError):
    """Raised when encoding or writing the interchange fails"""

    default_code = "GEN_001"
