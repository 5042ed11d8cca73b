"""Schema and business-rule validation for INVOIC records."""

import logging
from collections.abc import Mapping
from decimal import Decimal, InvalidOperation
from typing import Any, FrozenSet, Optional

from .config import DEFAULT_CONFIG, EDIFACTConfig
from .errors import EDIFACTValidationError
from .utils import DATE_FORMATS, parse_date, to_decimal, truncate

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("invoice_number", "invoice_date", "currency", "parties", "items")
REQUIRED_ITEM_FIELDS = ("id", "quantity", "price")
PARTY_ROLES = tuple(role for role, _ in EDIFACTConfig.PARTY_ROLES)


def _present(data: Mapping, field: str) -> bool:
    return data.get(field) is not None


def _is_supported(value: Any, allowed: FrozenSet[str]) -> bool:
    return isinstance(value, str) and value in allowed


class EDIFACTValidator:
    """Pure rule engine: a structural pass followed by a business-rule pass.

    Both passes stop at the first violation and raise EDIFACTValidationError with
    a stable code per rule.
    """

    @classmethod
    def validate_schema(cls, data: Any) -> None:
        """Check structural completeness, independent of the business config"""
        limits = DEFAULT_CONFIG

        if not isinstance(data, Mapping):
            raise EDIFACTValidationError(
                "Invoice record must be an object",
                "SCHEMA_010",
                {"type": type(data).__name__}
            )

        for field in REQUIRED_FIELDS:
            if not _present(data, field):
                raise EDIFACTValidationError(
                    f"Missing required field: {field}",
                    "SCHEMA_001",
                    {"missing_field": field}
                )

        cls.validate_field_length("invoice_number", data["invoice_number"], limits.max_document_number_length)

        if len(str(data["currency"])) > 3:
            raise EDIFACTValidationError(
                "Currency code must be 3 characters",
                "SCHEMA_002",
                {"field": "currency", "value": truncate(data["currency"]), "length": len(str(data["currency"]))}
            )

        parties = data["parties"]
        if not isinstance(parties, Mapping) or not all(role in parties for role in PARTY_ROLES):
            raise EDIFACTValidationError(
                "Both buyer and seller parties are required",
                "SCHEMA_003",
                {"field": "parties"}
            )

        for role in PARTY_ROLES:
            party = parties[role]
            if not isinstance(party, Mapping):
                raise EDIFACTValidationError(
                    f"{role} must be an object",
                    "SCHEMA_004",
                    {"party": role}
                )
            if not _present(party, "id"):
                raise EDIFACTValidationError(
                    f"{role} ID is required",
                    "SCHEMA_005",
                    {"party": role}
                )
            cls.validate_field_length(f"parties.{role}.id", party["id"], limits.max_party_id_length)
            if _present(party, "name"):
                cls.validate_field_length(f"parties.{role}.name", party["name"], limits.max_name_length)

        items = data["items"]
        if not isinstance(items, (list, tuple)) or len(items) < 1:
            raise EDIFACTValidationError(
                "At least one item is required",
                "SCHEMA_006",
                {"items_count": len(items) if isinstance(items, (list, tuple)) else 0}
            )

        for index, item in enumerate(items):
            if not isinstance(item, Mapping):
                raise EDIFACTValidationError(
                    f"Item {index} must be an object",
                    "SCHEMA_007",
                    {"item_index": index}
                )
            missing = [field for field in REQUIRED_ITEM_FIELDS if not _present(item, field)]
            if missing:
                raise EDIFACTValidationError(
                    f"Item {index} must contain id, quantity, and price",
                    "SCHEMA_008",
                    {"item_index": index, "missing_fields": missing}
                )
            cls.validate_field_length(f"items[{index}].id", item["id"], limits.max_item_id_length)

        if _present(data, "notes"):
            cls.validate_field_length("notes", data["notes"], limits.max_text_length)

        if _present(data, "message_ref"):
            cls.validate_field_length("message_ref", data["message_ref"], limits.max_message_ref_length)

        logger.debug("Schema validation passed for invoice %s", truncate(data["invoice_number"]))

    @staticmethod
    def validate_field_length(field_name: str, value: Any, max_length: int) -> None:
        text = str(value)
        if len(text) > max_length:
            raise EDIFACTValidationError(
                f"Field '{field_name}' exceeds maximum length of {max_length}",
                "SCHEMA_009",
                {"field": field_name, "value": truncate(text), "length": len(text), "max_length": max_length}
            )

    @classmethod
    def validate_business_rules(cls, data: Mapping, config: Optional[EDIFACTConfig] = None) -> None:
        """Check semantic rules against the config; assumes the schema pass succeeded"""
        config = config or DEFAULT_CONFIG

        if _present(data, "charset") and not _is_supported(data["charset"], config.supported_charsets):
            raise EDIFACTValidationError(
                f"Unsupported charset: {truncate(data['charset'])}",
                "VALID_002",
                {"field": "charset", "value": truncate(data["charset"]), "allowed": sorted(config.supported_charsets)}
            )

        if not _is_supported(data["currency"], config.supported_currencies):
            raise EDIFACTValidationError(
                f"Unsupported currency: {truncate(data['currency'])}",
                "VALID_003",
                {"field": "currency", "value": truncate(data["currency"]), "allowed": sorted(config.supported_currencies)}
            )

        invoice_date = cls._validate_date(data["invoice_date"], "invoice_date", config)
        due_date = None
        if _present(data, "due_date"):
            due_date = cls._validate_date(data["due_date"], "due_date", config)

        for role in PARTY_ROLES:
            cls._validate_party(data["parties"][role], role, config)

        for index, item in enumerate(data["items"]):
            cls._validate_item(item, index, config)

        if _present(data, "tax_rate"):
            rate = cls._coerce_number(data["tax_rate"])
            if rate is None or rate < 0:
                raise EDIFACTValidationError(
                    "Tax rate must be a non-negative number",
                    "VALID_014",
                    {"field": "tax_rate", "value": truncate(data["tax_rate"])}
                )

        if due_date is not None and due_date <= invoice_date:
            raise EDIFACTValidationError(
                "Due date must be after invoice date",
                "VALID_012",
                {"invoice_date": truncate(data["invoice_date"]), "due_date": truncate(data["due_date"])}
            )

        item_ids = [str(item["id"]) for item in data["items"]]
        if len(item_ids) != len(set(item_ids)):
            duplicates = sorted({item_id for item_id in item_ids if item_ids.count(item_id) > 1})
            raise EDIFACTValidationError(
                "Item IDs must be unique",
                "VALID_013",
                {"duplicate_ids": [truncate(item_id) for item_id in duplicates]}
            )

        logger.debug("Business rule validation passed for invoice %s", truncate(data["invoice_number"]))

    @staticmethod
    def _validate_date(date_str: Any, field_name: str, config: EDIFACTConfig):
        date_format = config.date_format
        if date_format not in DATE_FORMATS or date_format not in config.supported_date_formats:
            raise EDIFACTValidationError(
                f"Unsupported date format: {date_format}",
                "VALID_004",
                {"field": field_name, "date_format": date_format}
            )
        try:
            return parse_date(date_str, date_format)
        except ValueError as e:
            raise EDIFACTValidationError(
                f"Invalid date in {field_name}: {truncate(date_str)}",
                "VALID_005",
                {"field": field_name, "value": truncate(date_str), "date_format": date_format}
            ) from e

    @staticmethod
    def _validate_party(party: Mapping, role: str, config: EDIFACTConfig) -> None:
        party_id = str(party["id"])
        if not party_id.strip():
            raise EDIFACTValidationError(f"{role} ID is required", "VALID_006", {"role": role})

        if len(party_id) > config.max_party_id_length:
            raise EDIFACTValidationError(
                f"{role} ID too long: {len(party_id)} > {config.max_party_id_length}",
                "VALID_007",
                {"role": role, "value": truncate(party_id), "length": len(party_id)}
            )

        if _present(party, "name"):
            name = str(party["name"])
            if len(name) > config.max_name_length:
                raise EDIFACTValidationError(
                    f"{role} name too long: {len(name)} > {config.max_name_length}",
                    "VALID_008",
                    {"role": role, "value": truncate(name), "length": len(name)}
                )

    @classmethod
    def _validate_item(cls, item: Mapping, index: int, config: EDIFACTConfig) -> None:
        item_id = str(item["id"])
        if len(item_id) > config.max_item_id_length:
            raise EDIFACTValidationError(
                f"Item {index} ID too long: {len(item_id)} > {config.max_item_id_length}",
                "VALID_009",
                {"item_index": index, "value": truncate(item_id), "length": len(item_id)}
            )

        quantity = cls._coerce_number(item["quantity"])
        if quantity is None or quantity <= 0:
            raise EDIFACTValidationError(
                f"Item {index} quantity must be positive",
                "VALID_010",
                {"item_index": index, "quantity": truncate(item["quantity"])}
            )

        price = cls._coerce_number(item["price"])
        if price is None or price < 0:
            raise EDIFACTValidationError(
                f"Item {index} price must be non-negative",
                "VALID_011",
                {"item_index": index, "price": truncate(item["price"])}
            )

    @staticmethod
    def _coerce_number(value: Any) -> Optional[Decimal]:
        try:
            return to_decimal(value)
        except (InvalidOperation, TypeError, ValueError):
            return None


def validate_schema(data: Any) -> None:
    EDIFACTValidator.validate_schema(data)


def validate_business_rules(data: Mapping, config: Optional[EDIFACTConfig] = None) -> None:
    EDIFACTValidator.validate_business_rules(data, config)
