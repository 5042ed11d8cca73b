"""
EDIFACT INVOIC Generator
Builds one EDIFACT INVOIC interchange from a validated invoice record.
"""

import copy
import datetime
import enum
import json
import logging
import os
import uuid
from collections.abc import Mapping
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional, Tuple

from .config import EDIFACTConfig
from .errors import EDIFACTGenerationError
from .utils import chunk_text, escape_value, format_decimal, quantize, sanitize_record, to_decimal, truncate
from .validator import EDIFACTValidator

RECOMMENDED_EXTENSIONS = (".edi", ".edifact")
# CR and LF are stripped from data, so neither can appear inside a segment
SUPPORTED_LINE_ENDINGS = ("\n", "\r\n")
MAX_SEGMENT_DETAIL_LENGTH = 100


class GeneratorState(enum.Enum):
    CONSTRUCTED = "constructed"
    VALIDATED = "validated"
    ASSEMBLED = "assembled"
    DONE = "done"


class EDIFACTGenerator:
    """Generates an EDIFACT INVOIC interchange for a single invoice record.

    The record is sanitized once on construction. Every call to ``encode`` validates
    it, rebuilds the segment list from scratch and returns the interchange text.
    Instances are not meant to be shared between threads; use one per document.
    """

    def __init__(
        self,
        data: Dict[str, Any],
        config: Optional[EDIFACTConfig] = None,
        line_ending: str = "\n",
        logger: Optional[logging.Logger] = None,
        timestamp: Optional[datetime.datetime] = None,
        message_ref: Optional[str] = None
    ):
        if line_ending not in SUPPORTED_LINE_ENDINGS:
            raise ValueError(f"line_ending must be one of {SUPPORTED_LINE_ENDINGS!r}")

        self.config = config or EDIFACTConfig()
        self.data = sanitize_record(data)
        self.line_ending = line_ending
        self.logger = logger or logging.getLogger(__name__)
        self.timestamp = timestamp
        self.message_ref = self._resolve_message_ref(message_ref)
        self.segments: List[str] = []
        self.state = GeneratorState.CONSTRUCTED

    def _resolve_message_ref(self, message_ref: Optional[str]) -> str:
        """Use the supplied reference, else the record's, else a fresh one"""
        if message_ref:
            return str(sanitize_record(message_ref))
        if isinstance(self.data, Mapping) and self.data.get("message_ref"):
            return str(self.data["message_ref"])
        prefix = self.config.message_ref_prefix
        suffix_length = self.config.max_message_ref_length - len(prefix)
        return prefix + uuid.uuid4().hex[:suffix_length].upper()

    def _build_segment(self, segment_id: str, *elements: Any) -> str:
        """Build an EDIFACT segment; tuple elements are composites of escaped components"""
        rendered = []
        for element in elements:
            if isinstance(element, tuple):
                rendered.append(self.config.component_separator.join(
                    escape_value(component, self.config) for component in element
                ))
            else:
                rendered.append(escape_value(element, self.config))

        segment = self.config.data_element_separator.join([segment_id] + rendered) + self.config.segment_terminator
        self._validate_segment_length(segment)
        return segment

    def _validate_segment_length(self, segment: str) -> None:
        if len(segment) > self.config.max_segment_length:
            raise EDIFACTGenerationError(
                f"Segment too long: {len(segment)} > {self.config.max_segment_length}",
                "GEN_004",
                {
                    "segment": segment[:MAX_SEGMENT_DETAIL_LENGTH],
                    "length": len(segment),
                    "max_length": self.config.max_segment_length
                }
            )

    def _add(self, segment_id: str, *elements: Any) -> None:
        self.segments.append(self._build_segment(segment_id, *elements))
        self.logger.debug("Added segment: %s", segment_id)

    def _format(self, value: Any) -> str:
        return format_decimal(value, self.config.precision, self.config.decimal_notation)

    def encode(self) -> str:
        """
        Validate the record and generate the EDIFACT INVOIC interchange.

        Returns:
            The interchange text, segments joined by the configured line ending

        Raises:
            EDIFACTValidationError: the record breaks a schema or business rule
            EDIFACTGenerationError: a value or segment cannot be encoded
        """
        self.segments = []
        self.state = GeneratorState.CONSTRUCTED
        try:
            EDIFACTValidator.validate_schema(self.data)
            EDIFACTValidator.validate_field_length(
                "message_ref", self.message_ref, self.config.max_message_ref_length
            )
            EDIFACTValidator.validate_business_rules(self.data, self.config)
            self.state = GeneratorState.VALIDATED
            self.logger.info("Generating INVOIC message for invoice %s", truncate(self.data["invoice_number"]))

            timestamp = self.timestamp or datetime.datetime.now()
            self._add_una_segment()
            self._add_unb_segment(timestamp)
            self._add_header_segments()
            self._add_currency_segment()
            self._add_party_segments()
            self._add_line_items()
            self._add_ftx_segments()
            self._add_payment_instructions()
            self._add_summary_segments()
            self._add_unt_segment()
            self._add_unz_segment()

            edifact_message = self.line_ending.join(self.segments)
            self.state = GeneratorState.ASSEMBLED

            if not self.validate_edifact_syntax(edifact_message):
                raise EDIFACTGenerationError("Generated EDIFACT content failed syntax validation", "GEN_006")
        except Exception:
            self.segments = []
            self.state = GeneratorState.CONSTRUCTED
            raise

        charset = self.data.get("charset") or self.config.default_charset
        if charset == "UNOA" and not edifact_message.isascii():
            self.logger.warning("Non-ASCII characters detected with UNOA character set")

        self.state = GeneratorState.DONE
        self.logger.info("Generated %d segments for message %s", len(self.segments), self.message_ref)
        return edifact_message

    def _add_una_segment(self) -> None:
        # Service string advice is emitted verbatim, never escaped
        self.segments.append(self.config.una_segment)
        self.logger.debug("Added segment: %s", EDIFACTConfig.SEGMENT_UNA)

    def _add_unb_segment(self, timestamp: datetime.datetime) -> None:
        charset = self.data.get("charset") or self.config.default_charset
        self._add(
            EDIFACTConfig.SEGMENT_UNB,
            (charset, self.config.syntax_version),
            self.data.get("sender_id") or self.config.default_sender_id,
            self.data.get("receiver_id") or self.config.default_receiver_id,
            timestamp.strftime("%y%m%d%H%M"),
            self.message_ref
        )

    def _add_header_segments(self) -> None:
        config = self.config
        self._add(
            EDIFACTConfig.SEGMENT_UNH,
            self.message_ref,
            (config.message_type, config.message_version, config.message_release, config.controlling_agency)
        )
        self._add(
            EDIFACTConfig.SEGMENT_BGM,
            EDIFACTConfig.INVOIC_DOCUMENT_TYPE,
            self.data["invoice_number"],
            EDIFACTConfig.ORIGINAL_DOCUMENT
        )
        self._add(
            EDIFACTConfig.SEGMENT_DTM,
            (EDIFACTConfig.DOCUMENT_DATE_QUALIFIER, self.data["invoice_date"], config.date_format)
        )
        if self.data.get("due_date") is not None:
            self._add(
                EDIFACTConfig.SEGMENT_DTM,
                (EDIFACTConfig.DUE_DATE_QUALIFIER, self.data["due_date"], config.date_format)
            )

    def _add_currency_segment(self) -> None:
        self._add(
            EDIFACTConfig.SEGMENT_CUX,
            (
                EDIFACTConfig.REFERENCE_CURRENCY_QUALIFIER,
                self.data["currency"],
                EDIFACTConfig.INVOICING_CURRENCY_QUALIFIER
            )
        )

    def _add_party_segments(self) -> None:
        for role, qualifier in EDIFACTConfig.PARTY_ROLES:
            party = self.data["parties"][role]
            name = party.get("name")
            self._add(
                EDIFACTConfig.SEGMENT_NAD,
                qualifier,
                (party["id"], "", EDIFACTConfig.ASSIGNED_BY_BUYER),
                "",
                "" if name is None else name
            )
            if party.get("address") is not None:
                self._add(EDIFACTConfig.SEGMENT_LOC, EDIFACTConfig.LOCATION_QUALIFIER, party["address"])
            if party.get("contact") is not None:
                self._add(EDIFACTConfig.SEGMENT_COM, (party["contact"], EDIFACTConfig.TELEPHONE_CHANNEL))

    def _add_line_items(self) -> None:
        for index, item in enumerate(self.data["items"], start=1):
            unit = item.get("unit") or self.config.default_unit

            self._add(EDIFACTConfig.SEGMENT_LIN, str(index), "", (item["id"], EDIFACTConfig.EAN_ITEM_NUMBER))
            if item.get("description") is not None:
                self._add(EDIFACTConfig.SEGMENT_IMD, EDIFACTConfig.FREE_FORM_DESCRIPTION, "", ("", "", "", item["description"]))
            self._add(
                EDIFACTConfig.SEGMENT_QTY,
                (EDIFACTConfig.INVOICED_QUANTITY, self._format(item["quantity"]), unit)
            )
            self._add(
                EDIFACTConfig.SEGMENT_PRI,
                (EDIFACTConfig.CALCULATION_NET, self._format(item["price"]), unit)
            )

    def _add_ftx_segments(self) -> None:
        notes = self.data.get("notes")
        if not notes:
            return
        for sequence, chunk in enumerate(chunk_text(str(notes), self.config.free_text_chunk_length), start=1):
            self._add(EDIFACTConfig.SEGMENT_FTX, EDIFACTConfig.GENERAL_INFORMATION, str(sequence), "", "", chunk)

    def _add_payment_instructions(self) -> None:
        bank_account = self.data.get("bank_account")
        if not isinstance(bank_account, Mapping):
            return
        if bank_account.get("account") and bank_account.get("bank_code"):
            self._add(
                EDIFACTConfig.SEGMENT_FII,
                EDIFACTConfig.BENEFICIARY_BANK,
                "",
                bank_account["account"],
                "",
                bank_account["bank_code"]
            )

    def _calculate_totals(self) -> Tuple[Decimal, Optional[Decimal], Optional[Decimal]]:
        """Return the rounded subtotal, tax rate and rounded tax amount"""
        precision = self.config.precision
        tax_rate = tax_amount = None
        try:
            subtotal = Decimal("0")
            for item in self.data["items"]:
                subtotal += to_decimal(item["quantity"]) * to_decimal(item["price"])
            subtotal_rounded = quantize(subtotal, precision)

            if self.data.get("tax_rate") is not None:
                tax_rate = to_decimal(self.data["tax_rate"])
                tax_amount = quantize(subtotal * tax_rate / Decimal("100"), precision)
        except (InvalidOperation, TypeError, ValueError) as e:
            raise EDIFACTGenerationError(
                "Invoice totals cannot be represented",
                "GEN_003",
                {"invoice_number": truncate(self.data["invoice_number"]), "error": truncate(repr(e))}
            ) from e
        return subtotal_rounded, tax_rate, tax_amount

    def _add_summary_segments(self) -> None:
        """Add MOA totals, the optional TAX block and PAI payment instructions"""
        subtotal_rounded, tax_rate, tax_amount = self._calculate_totals()

        self._add(EDIFACTConfig.SEGMENT_MOA, (EDIFACTConfig.LINE_ITEMS_AMOUNT, self._format(subtotal_rounded)))

        if tax_rate is not None:
            self._add(
                EDIFACTConfig.SEGMENT_TAX,
                EDIFACTConfig.DUTY_TAX_FEE_FUNCTION,
                EDIFACTConfig.VAT_TAX_CATEGORY,
                "",
                "",
                "",
                self._format(tax_rate)
            )
            self._add(EDIFACTConfig.SEGMENT_MOA, (EDIFACTConfig.TAX_AMOUNT, self._format(tax_amount)))
            # Total is the sum of the rounded parts
            total_amount = subtotal_rounded + tax_amount
            self._add(EDIFACTConfig.SEGMENT_MOA, (EDIFACTConfig.TOTAL_AMOUNT, self._format(total_amount)))
        else:
            self._add(EDIFACTConfig.SEGMENT_MOA, (EDIFACTConfig.TOTAL_AMOUNT, self._format(subtotal_rounded)))

        if self.data.get("payment_terms") is not None:
            self._add(EDIFACTConfig.SEGMENT_PAI, (self.data["payment_terms"], EDIFACTConfig.PAYMENT_MEANS_CODE))

    def _add_unt_segment(self) -> None:
        """UNT counts every segment from the first UNH through UNT itself"""
        unh_prefix = EDIFACTConfig.SEGMENT_UNH + self.config.data_element_separator
        unh_index = next((i for i, segment in enumerate(self.segments) if segment.startswith(unh_prefix)), None)
        if unh_index is None:
            raise EDIFACTGenerationError("UNH segment not found", "GEN_005")

        segment_count = len(self.segments) - unh_index + 1
        self._add(EDIFACTConfig.SEGMENT_UNT, str(segment_count), self.message_ref)

    def _add_unz_segment(self) -> None:
        self._add(EDIFACTConfig.SEGMENT_UNZ, "1", self.message_ref)

    def validate_edifact_syntax(self, content: str) -> bool:
        """Gross syntax check: UNA first, every following line terminated"""
        lines = content.split(self.line_ending)
        if not lines[0].startswith(EDIFACTConfig.SEGMENT_UNA):
            self.logger.error("Missing UNA segment")
            return False

        for number, line in enumerate(lines[1:], start=1):
            if not line.endswith(self.config.segment_terminator):
                self.logger.error("Line %d missing segment terminator: %s", number, truncate(line))
                return False
        return True

    def _validate_file_path(self, filename: str) -> None:
        if not filename or os.path.basename(filename) != filename or filename in (".", ".."):
            raise EDIFACTGenerationError(
                "Invalid filename provided",
                "IO_001",
                {"filename": truncate(filename)}
            )
        if not filename.lower().endswith(RECOMMENDED_EXTENSIONS):
            self.logger.warning("Recommended file extension is .edi or .edifact")

    def save_to_file(
        self,
        filename: Optional[str] = None,
        directory: Optional[str] = None,
        encoding: str = "utf-8",
        force: bool = False
    ) -> str:
        """
        Encode the invoice and write it to a file.

        Args:
            filename: Base name of the file (default: invoice_<invoice_number>.edi)
            directory: Directory to write into (default: current directory)
            encoding: Text encoding of the file
            force: Overwrite an existing file if True

        Returns:
            Path of the written file
        """
        edifact_message = self.encode()
        if filename is None:
            filename = f"invoice_{self.data['invoice_number']}.edi"

        self._validate_file_path(filename)
        path = os.path.join(directory, filename) if directory else filename

        if not force and os.path.exists(path):
            raise EDIFACTGenerationError(
                f"File {truncate(filename)} exists. Use --force to overwrite.",
                "IO_004",
                {"filename": truncate(filename)}
            )
        try:
            with open(path, "w", encoding=encoding, newline="") as f:
                f.write(edifact_message)
        except OSError as e:
            self.logger.error("Failed to write file %s: %s", path, e)
            raise EDIFACTGenerationError(f"Failed to write file: {e}", "IO_002", {"filename": truncate(filename)}) from e

        self.logger.info("INVOIC message saved to %s with encoding %s", os.path.abspath(path), encoding)
        return path

    @classmethod
    def from_json_file(cls, filepath: str, **kwargs: Any) -> "EDIFACTGenerator":
        """Create a generator from an invoice record stored as JSON"""
        try:
            with open(filepath, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            raise EDIFACTGenerationError(
                f"Failed to load JSON file: {e}",
                "IO_003",
                {"filepath": truncate(filepath)}
            ) from e
        return cls(data, **kwargs)

    def to_dict(self) -> Dict[str, Any]:
        return copy.deepcopy(self.data)


def encode(
    data: Dict[str, Any],
    config: Optional[EDIFACTConfig] = None,
    line_ending: str = "\n",
    message_ref: Optional[str] = None,
    timestamp: Optional[datetime.datetime] = None,
    logger: Optional[logging.Logger] = None
) -> str:
    """Encode one invoice record with a fresh generator"""
    generator = EDIFACTGenerator(
        data,
        config=config,
        line_ending=line_ending,
        logger=logger,
        timestamp=timestamp,
        message_ref=message_ref
    )
    return generator.encode()
