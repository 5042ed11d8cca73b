"""Command-line entry point for generating EDIFACT INVOIC files."""

import argparse
import logging
from typing import Any, Dict, List, Optional

from .config import EDIFACTConfig
from .errors import EDIFACTBaseError
from .generator import EDIFACTGenerator

LINE_ENDINGS = {"lf": "\n", "crlf": "\r\n"}


def configure_logging(level: int = logging.INFO) -> logging.Logger:
    """Configure application logging with customizable level"""
    logger = logging.getLogger("edifact_invoic")
    if not logger.handlers:  # Avoid duplicate handlers
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter("%(asctime)s - %(levelname)s - %(message)s"))
        logger.addHandler(handler)
    logger.setLevel(level)
    return logger


def generate_example_invoic() -> Dict[str, Any]:
    """Generate example INVOIC data for testing"""
    return {
        "invoice_number": "INV12345",
        "invoice_date": "20250509",
        "due_date": "20250609",
        "currency": "EUR",
        "tax_rate": 21.0,
        "payment_terms": "NET30",
        "sender_id": "COMPANY_A",
        "receiver_id": "COMPANY_B",
        "notes": "Thank you for your business. Please note that payments should be made within 30 days.",
        "bank_account": {
            "account": "NL91ABNA0417164300",
            "bank_code": "ABNANL2A"
        },
        "parties": {
            "buyer": {
                "id": "BUYER123",
                "name": "Buyer Corporation",
                "address": "123 Main St",
                "contact": "buyer@example.com"
            },
            "seller": {
                "id": "SELLER456",
                "name": "Seller Ltd",
                "address": "456 Oak Ave",
                "contact": "sales@seller.com"
            }
        },
        "items": [
            {
                "id": "ITEM001",
                "description": "Premium Widget",
                "quantity": 10,
                "price": 25.50,
                "unit": "PCE"
            },
            {
                "id": "ITEM002",
                "description": "Standard Widget",
                "quantity": 5,
                "price": 15.75,
                "unit": "PCE"
            }
        ]
    }


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Generate EDIFACT INVOIC messages")
    parser.add_argument("--input", help="JSON file with invoice data")
    parser.add_argument("--output", help="Output EDI file name (default: invoice_<number>.edi)")
    parser.add_argument("--output-dir", help="Directory to write the output file into")
    parser.add_argument("--force", action="store_true", help="Overwrite existing output file")
    parser.add_argument("--line-ending", choices=sorted(LINE_ENDINGS), default="crlf",
                        help="Segment line ending (default: crlf)")
    parser.add_argument("--precision", type=int, help="Decimal places for numeric values (default: 2)")
    parser.add_argument("--message-ref", help="Message reference used in UNB/UNH/UNT/UNZ")
    parser.add_argument("--verbose", action="store_true", help="Verbose output")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logger = configure_logging(logging.DEBUG if args.verbose else logging.INFO)

    try:
        config = EDIFACTConfig().with_overrides(precision=args.precision)
        options = {
            "config": config,
            "line_ending": LINE_ENDINGS[args.line_ending],
            "logger": logger,
            "message_ref": args.message_ref,
        }
        if args.input:
            generator = EDIFACTGenerator.from_json_file(args.input, **options)
            logger.info("Loaded invoice data from %s", args.input)
        else:
            generator = EDIFACTGenerator(generate_example_invoic(), **options)
            logger.info("Using example invoice data")

        path = generator.save_to_file(args.output, directory=args.output_dir, force=args.force)
    except EDIFACTBaseError as e:
        logger.error("EDIFACT generation failed: %s", e)
        if e.details:
            logger.error("Error details: %s", e.details)
        return 1
    except ValueError as e:
        logger.error("Invalid configuration: %s", e)
        return 1

    with open(path, "r", encoding="utf-8", newline="") as f:
        print("\nGenerated INVOIC Message:\n")
        print(f.read())
    print(f"\nInvoice saved to '{path}'")
    return 0
