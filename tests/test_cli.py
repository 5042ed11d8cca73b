"""Tests for file output, JSON loading and the command-line entry point"""

import json
import logging

import pytest

from edifact_invoic.cli import configure_logging, main
from edifact_invoic.config import EDIFACTConfig
from edifact_invoic.errors import EDIFACTGenerationError, EDIFACTValidationError
from edifact_invoic.generator import EDIFACTGenerator


class TestSaveToFile:
    """Test writing the interchange to disk"""

    def test_default_filename(self, minimal_invoice, tmp_path):
        path = EDIFACTGenerator(minimal_invoice).save_to_file(directory=str(tmp_path))
        assert path == str(tmp_path / "invoice_INV1.edi")
        assert (tmp_path / "invoice_INV1.edi").read_text(encoding="utf-8").startswith("UNA:+.? '")

    def test_crlf_preserved(self, minimal_invoice, tmp_path):
        generator = EDIFACTGenerator(minimal_invoice, line_ending="\r\n")
        generator.save_to_file("out.edi", directory=str(tmp_path))
        raw = (tmp_path / "out.edi").read_bytes()
        assert b"UNA:+.? '\r\nUNB+" in raw

    @pytest.mark.parametrize("filename", ["../escape.edi", "sub/dir.edi", ""])
    def test_path_traversal_rejected(self, minimal_invoice, tmp_path, filename):
        with pytest.raises(EDIFACTGenerationError) as exc_info:
            EDIFACTGenerator(minimal_invoice).save_to_file(filename, directory=str(tmp_path))
        assert exc_info.value.code == "IO_001"

    def test_unusual_extension_only_warns(self, minimal_invoice, tmp_path, caplog):
        with caplog.at_level(logging.WARNING, logger="edifact_invoic"):
            EDIFACTGenerator(minimal_invoice).save_to_file("invoice.txt", directory=str(tmp_path))
        assert (tmp_path / "invoice.txt").exists()
        assert "Recommended file extension" in caplog.text

    def test_existing_file_requires_force(self, minimal_invoice, tmp_path):
        (tmp_path / "out.edi").write_text("old", encoding="utf-8")
        generator = EDIFACTGenerator(minimal_invoice)
        with pytest.raises(EDIFACTGenerationError) as exc_info:
            generator.save_to_file("out.edi", directory=str(tmp_path))
        assert exc_info.value.code == "IO_004"

        generator.save_to_file("out.edi", directory=str(tmp_path), force=True)
        assert (tmp_path / "out.edi").read_text(encoding="utf-8") != "old"

    def test_write_failure_wrapped(self, minimal_invoice, tmp_path):
        missing_dir = tmp_path / "missing"
        with pytest.raises(EDIFACTGenerationError) as exc_info:
            EDIFACTGenerator(minimal_invoice).save_to_file("out.edi", directory=str(missing_dir))
        assert exc_info.value.code == "IO_002"
        assert isinstance(exc_info.value.__cause__, OSError)

    def test_invalid_record_writes_nothing(self, minimal_invoice, tmp_path):
        minimal_invoice["currency"] = "XXX"
        with pytest.raises(EDIFACTValidationError):
            EDIFACTGenerator(minimal_invoice).save_to_file("out.edi", directory=str(tmp_path))
        assert not (tmp_path / "out.edi").exists()


class TestFromJsonFile:

    def test_loads_record(self, minimal_invoice, tmp_path):
        source = tmp_path / "invoice.json"
        source.write_text(json.dumps(minimal_invoice), encoding="utf-8")
        generator = EDIFACTGenerator.from_json_file(str(source), config=EDIFACTConfig(), message_ref="J1")
        assert generator.message_ref == "J1"
        assert generator.to_dict() == minimal_invoice

    def test_invalid_json(self, tmp_path):
        source = tmp_path / "broken.json"
        source.write_text("{not json", encoding="utf-8")
        with pytest.raises(EDIFACTGenerationError) as exc_info:
            EDIFACTGenerator.from_json_file(str(source))
        assert exc_info.value.code == "IO_003"

    def test_missing_file(self, tmp_path):
        with pytest.raises(EDIFACTGenerationError) as exc_info:
            EDIFACTGenerator.from_json_file(str(tmp_path / "absent.json"))
        assert exc_info.value.code == "IO_003"


class TestMain:
    """Test the argparse entry point"""

    def test_example_invoice(self, tmp_path, capsys):
        exit_code = main(["--output-dir", str(tmp_path), "--message-ref", "CLI1"])
        assert exit_code == 0
        content = (tmp_path / "invoice_INV12345.edi").read_bytes().decode("utf-8")
        assert content.split("\r\n")[2] == "UNH+CLI1+INVOIC:D:96A:UN'"
        assert "Generated INVOIC Message" in capsys.readouterr().out

    def test_input_file_with_lf(self, minimal_invoice, tmp_path):
        source = tmp_path / "invoice.json"
        source.write_text(json.dumps(minimal_invoice), encoding="utf-8")
        exit_code = main([
            "--input", str(source),
            "--output", "minimal.edi",
            "--output-dir", str(tmp_path),
            "--line-ending", "lf",
        ])
        assert exit_code == 0
        lines = (tmp_path / "minimal.edi").read_bytes().decode("utf-8").split("\n")
        assert "MOA+86:20'" in lines

    def test_validation_error_logged_with_code(self, minimal_invoice, tmp_path, caplog):
        minimal_invoice["currency"] = "XXX"
        source = tmp_path / "invoice.json"
        source.write_text(json.dumps(minimal_invoice), encoding="utf-8")
        with caplog.at_level(logging.ERROR, logger="edifact_invoic"):
            exit_code = main(["--input", str(source), "--output-dir", str(tmp_path)])
        assert exit_code == 1
        assert "VALID_003" in caplog.text
        assert "Error details" in caplog.text

    def test_invalid_precision(self, tmp_path):
        assert main(["--precision", "-1", "--output-dir", str(tmp_path)]) == 1

    def test_configure_logging_is_idempotent(self):
        logger = configure_logging(logging.INFO)
        handler_count = len(logger.handlers)
        assert configure_logging(logging.DEBUG) is logger
        assert len(logger.handlers) == handler_count
        assert logger.level == logging.DEBUG
