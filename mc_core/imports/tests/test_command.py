# mc_core/imports/tests/test_command.py
import csv
from io import StringIO

import pytest
from django.core.management import CommandError, call_command

from mc_core.imports.tests.factories import COLUMNS, dispense_row
from mc_core.intakes.models import MedicationIntake
from mc_core.patients.models import Patient

pytestmark = pytest.mark.django_db


def _write_csv(path, rows, encoding="utf-8"):
    with path.open("w", newline="", encoding=encoding) as fh:
        writer = csv.DictWriter(fh, fieldnames=COLUMNS, delimiter=";")
        writer.writeheader()
        writer.writerows(rows)


def test_imports_csv_and_prints_summary(tmp_path):
    path = tmp_path / "dispenses.csv"
    _write_csv(path, [dispense_row()])
    out = StringIO()

    call_command("import_dispenses", str(path), stdout=out)

    assert "1 imported, 0 failed" in out.getvalue()
    assert MedicationIntake.objects.count() == 10


def test_row_errors_go_to_stderr(tmp_path):
    path = tmp_path / "dispenses.csv"
    _write_csv(path, [dispense_row(), dispense_row(DNI="12")])
    out, err = StringIO(), StringIO()

    call_command("import_dispenses", str(path), "--batch-size", "1", stdout=out, stderr=err)

    assert "1 imported, 1 failed" in out.getvalue()
    assert "Row 2: patient DNI must have 8 digits" in err.getvalue()


def test_missing_file_is_a_command_error(tmp_path):
    with pytest.raises(CommandError):
        call_command("import_dispenses", str(tmp_path / "nope.csv"))


def test_undecodable_file_fails_before_any_row_is_imported(tmp_path):
    path = tmp_path / "dispenses.csv"
    rows = [dispense_row(), dispense_row(DNI="87654321", NUM_RECETA="RX-200", PACIENTE="MUÑOZ QUISPE ROSA")]
    _write_csv(path, rows, encoding="latin-1")

    with pytest.raises(CommandError) as exc:
        call_command("import_dispenses", str(path), "--batch-size", "1")

    assert "--encoding latin-1" in str(exc.value)
    assert Patient.objects.count() == 0


def test_latin1_file_imports_with_matching_encoding(tmp_path):
    path = tmp_path / "dispenses.csv"
    _write_csv(path, [dispense_row(PACIENTE="MUÑOZ QUISPE ROSA")], encoding="latin-1")
    out = StringIO()

    call_command("import_dispenses", str(path), "--encoding", "latin-1", stdout=out)

    assert "1 imported, 0 failed" in out.getvalue()
    assert Patient.objects.get(document_id="12345678").full_name == "MUÑOZ QUISPE ROSA"


def test_unknown_encoding_is_a_command_error(tmp_path):
    path = tmp_path / "dispenses.csv"
    _write_csv(path, [dispense_row()])

    with pytest.raises(CommandError):
        call_command("import_dispenses", str(path), "--encoding", "no-such-codec")
