"""Configuration for EDIFACT INVOIC generation."""

from dataclasses import dataclass, fields, replace
from typing import Any, FrozenSet


@dataclass(frozen=True)
class EDIFACTConfig:
    """Immutable settings shared by the validator and generator"""

    # Document types
    INVOIC_DOCUMENT_TYPE = "380"
    ORIGINAL_DOCUMENT = "9"

    # Qualifiers
    DOCUMENT_DATE_QUALIFIER = "137"
    DUE_DATE_QUALIFIER = "13"
    REFERENCE_CURRENCY_QUALIFIER = "2"
    INVOICING_CURRENCY_QUALIFIER = "9"
    ASSIGNED_BY_BUYER = "91"
    PARTY_ROLES = (("buyer", "BY"), ("seller", "SE"))
    INVOICED_QUANTITY = "47"
    CALCULATION_NET = "AAA"
    GENERAL_INFORMATION = "AAI"
    BENEFICIARY_BANK = "BE"
    LINE_ITEMS_AMOUNT = "79"
    TAX_AMOUNT = "124"
    TOTAL_AMOUNT = "86"
    VAT_TAX_CATEGORY = "VAT"
    DUTY_TAX_FEE_FUNCTION = "7"
    PAYMENT_MEANS_CODE = "3"
    LOCATION_QUALIFIER = "11"
    TELEPHONE_CHANNEL = "TE"
    EAN_ITEM_NUMBER = "EN"
    FREE_FORM_DESCRIPTION = "F"

    # Segment identifiers
    SEGMENT_UNA = "UNA"
    SEGMENT_UNB = "UNB"
    SEGMENT_UNH = "UNH"
    SEGMENT_BGM = "BGM"
    SEGMENT_DTM = "DTM"
    SEGMENT_CUX = "CUX"
    SEGMENT_NAD = "NAD"
    SEGMENT_LOC = "LOC"
    SEGMENT_COM = "COM"
    SEGMENT_LIN = "LIN"
    SEGMENT_IMD = "IMD"
    SEGMENT_QTY = "QTY"
    SEGMENT_PRI = "PRI"
    SEGMENT_FTX = "FTX"
    SEGMENT_FII = "FII"
    SEGMENT_MOA = "MOA"
    SEGMENT_TAX = "TAX"
    SEGMENT_PAI = "PAI"
    SEGMENT_UNT = "UNT"
    SEGMENT_UNZ = "UNZ"

    supported_charsets: FrozenSet[str] = frozenset({"UNOA", "UNOB", "UNOC"})
    supported_currencies: FrozenSet[str] = frozenset({"EUR", "USD", "GBP", "JPY", "CAD"})
    supported_date_formats: FrozenSet[str] = frozenset({"102", "203", "101"})
    date_format: str = "102"

    max_document_number_length: int = 35
    max_message_ref_length: int = 14
    max_party_id_length: int = 35
    max_name_length: int = 70
    max_item_id_length: int = 35
    max_text_length: int = 350
    max_segment_length: int = 2000
    free_text_chunk_length: int = 70

    segment_terminator: str = "'"
    data_element_separator: str = "+"
    component_separator: str = ":"
    repetition_separator: str = "*"
    release_character: str = "?"
    decimal_notation: str = "."
    reserved_placeholder: str = " "
    precision: int = 2

    default_charset: str = "UNOC"
    syntax_version: str = "3"
    message_type: str = "INVOIC"
    message_version: str = "D"
    message_release: str = "96A"
    controlling_agency: str = "UN"
    default_sender_id: str = "SENDER"
    default_receiver_id: str = "RECEIVER"
    default_unit: str = "PCE"
    message_ref_prefix: str = "INV"

    def __post_init__(self):
        for name in ("supported_charsets", "supported_currencies", "supported_date_formats"):
            object.__setattr__(self, name, frozenset(getattr(self, name)))

        if self.precision < 0:
            raise ValueError("precision must not be negative")
        if self.max_segment_length < 10:
            raise ValueError("max_segment_length must be at least 10")
        if self.free_text_chunk_length < 1:
            raise ValueError("free_text_chunk_length must be positive")

        delimiters = self.service_characters + (self.repetition_separator,)
        if any(len(char) != 1 for char in delimiters):
            raise ValueError("Service characters must be single characters")
        if len(set(delimiters)) != len(delimiters):
            raise ValueError("Service characters must be distinct")

    @property
    def service_characters(self) -> tuple:
        """The six characters advertised by UNA, in UNA order"""
        return (
            self.component_separator,
            self.data_element_separator,
            self.decimal_notation,
            self.release_character,
            self.reserved_placeholder,
            self.segment_terminator,
        )

    @property
    def reserved_characters(self) -> FrozenSet[str]:
        """Characters that must be preceded by the release character in data"""
        return frozenset({
            self.segment_terminator,
            self.data_element_separator,
            self.component_separator,
            self.repetition_separator,
        })

    @property
    def una_segment(self) -> str:
        return self.SEGMENT_UNA + "".join(self.service_characters)

    def with_overrides(self, **overrides: Any) -> "EDIFACTConfig":
        """Return a copy with the given fields replaced, ignoring unset (None) values"""
        known = {f.name for f in fields(self)}
        unknown = set(overrides) - known
        if unknown:
            raise ValueError(f"Unknown configuration fields: {', '.join(sorted(unknown))}")
        return replace(self, **{key: value for key, value in overrides.items() if value is not None})


DEFAULT_CONFIG = EDIFACTConfig()
