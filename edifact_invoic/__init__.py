"""EDIFACT INVOIC generation: validate invoice records and encode them as EDIFACT interchanges."""

from .config import DEFAULT_CONFIG, EDIFACTConfig
from .errors import EDIFACTBaseError, EDIFACTGenerationError, EDIFACTValidationError
from .generator import EDIFACTGenerator, GeneratorState, encode
from .utils import escape_value, format_decimal, parse_date, sanitize_record
from .validator import EDIFACTValidator, validate_business_rules, validate_schema

__version__ = "1.0.0"

__all__ = [
    "DEFAULT_CONFIG",
    "EDIFACTConfig",
    "EDIFACTBaseError",
    "EDIFACTGenerationError",
    "EDIFACTValidationError",
    "EDIFACTGenerator",
    "EDIFACTValidator",
    "GeneratorState",
    "encode",
    "escape_value",
    "format_decimal",
    "parse_date",
    "sanitize_record",
    "validate_business_rules",
    "validate_schema",
]
