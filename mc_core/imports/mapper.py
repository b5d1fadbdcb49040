# mc_core/imports/mapper.py
"""
Pharmacy dispense export -> typed rows.

The export is a `;`-delimited CSV with Spanish column headers, one line per
dispensed prescription item. Dates come as d/m/yyyy, times as HH:MM.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, time
from typing import Mapping

from mc_core.common.errors import ValidationError
from mc_core.intakes.dispense import parse_dispatch_time

INVALID_ROW = "InvalidImportRow"

_DNI_RE = re.compile(r"^\d{8}$")


@dataclass(frozen=True)
class DispenseRow:
    row_number: int

    patient_document_id: str
    patient_name: str
    patient_sex: str
    insurance_type: str
    patient_type: str

    prescriber_document_id: str
    prescriber_name: str

    medication_code: str
    medication_description: str
    unit: str
    duration: str
    price: str

    requested_quantity: int
    dispensed_quantity: int

    prescription_number: str
    requested_on: date
    dispatch_date: date | None
    dispatch_time: time | None

    dx_code: str
    dx_description: str


def parse_dmy(raw) -> date | None:
    """
    "4/10/2024" -> date(2024, 10, 4). Anything else -> None.
    """
    parts = (raw or "").strip().split("/")
    if len(parts) != 3:
        return None
    try:
        day, month, year = (int(p) for p in parts)
        return date(year, month, day)
    except ValueError:
        return None


def _int_or_zero(raw) -> int:
    m = re.match(r"^\s*(\d+)", raw or "")
    return int(m.group(1)) if m else 0


class DispenseRowMapper:
    """
    Validates a raw CSV row and maps it to a DispenseRow. All problems of a
    row are reported together in one ValidationError.
    """

    def _get(self, row: Mapping[str, str], column: str) -> str:
        return (row.get(column) or "").strip()

    def map_row(self, row: Mapping[str, str], row_number: int) -> DispenseRow:
        def get(column: str) -> str:
            return self._get(row, column)

        errors: list[str] = []

        patient_dni = get("DNI")
        if not patient_dni:
            errors.append("patient DNI is required")
        elif not _DNI_RE.match(patient_dni):
            errors.append("patient DNI must have 8 digits")

        if not get("PACIENTE"):
            errors.append("patient name is required")

        prescriber_dni = get("DNI_PROFESIONAL")
        if not prescriber_dni:
            errors.append("prescriber DNI is required")
        elif not _DNI_RE.match(prescriber_dni):
            errors.append("prescriber DNI must have 8 digits")

        if not get("NOMBRE_PROFESIONAL"):
            errors.append("prescriber name is required")
        if not get("COD_MEDICAMENTO"):
            errors.append("medication code is required")
        if not get("DESC_MEDICAMENTO"):
            errors.append("medication description is required")
        if not get("NUM_RECETA"):
            errors.append("prescription number is required")

        requested_on = parse_dmy(get("FECHA_SOLICITUD"))
        if requested_on is None:
            errors.append("request date is required (d/m/yyyy)")

        dispatch_date = None
        if get("FECHA_DESPACHO"):
            dispatch_date = parse_dmy(get("FECHA_DESPACHO"))
            if dispatch_date is None:
                errors.append("dispatch date must be d/m/yyyy")

        sex = get("SEXO")
        if sex and sex not in ("M", "F"):
            errors.append("sex must be 'M' or 'F'")

        dispatch_time = None
        try:
            dispatch_time = parse_dispatch_time(get("HORA_DESPACHO"))
        except ValidationError:
            errors.append("dispatch time must be HH:MM")

        if errors:
            raise ValidationError(
                f"Row {row_number}: " + "; ".join(errors),
                kind=INVALID_ROW,
                details={"row": row_number, "errors": errors},
            )

        prescriber_name = " ".join(
            part for part in (get("NOMBRE_PROFESIONAL"), get("APELLPAT_PROFESIONAL"), get("APELLMAT_PROFESIONAL")) if part
        )

        return DispenseRow(
            row_number=row_number,
            patient_document_id=patient_dni,
            patient_name=get("PACIENTE"),
            patient_sex=sex,
            insurance_type=get("TIPO_SEGURO"),
            patient_type=get("TIPO_PACIENTE"),
            prescriber_document_id=prescriber_dni,
            prescriber_name=prescriber_name,
            medication_code=get("COD_MEDICAMENTO"),
            medication_description=get("DESC_MEDICAMENTO"),
            unit=get("UNIDAD"),
            duration=get("DURACION_MED"),
            price=get("PRECIO"),
            requested_quantity=_int_or_zero(get("CANT_SOLICITUD")),
            dispensed_quantity=_int_or_zero(get("CANT_ATENDIDA")),
            prescription_number=get("NUM_RECETA"),
            requested_on=requested_on,
            dispatch_date=dispatch_date,
            dispatch_time=dispatch_time,
            dx_code=get("COD_DX"),
            dx_description=get("DESC_DX"),
        )
