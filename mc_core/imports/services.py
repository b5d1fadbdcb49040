# mc_core/imports/services.py
from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field, fields
from typing import Callable, Iterable, Iterator, Mapping, Optional

from django.conf import settings
from django.db import DatabaseError, transaction

from mc_core.common.errors import DomainError
from mc_core.imports.mapper import DispenseRow, DispenseRowMapper
from mc_core.patients.services import PatientService
from mc_core.prescriptions.services import PrescriptionItemService, PrescriptionService

DEFAULT_BATCH_SIZE = 100
DEFAULT_BATCH_TIMEOUT = 30.0


class BatchTimeout(Exception):
    pass


@dataclass
class ImportStats:
    total_rows: int = 0
    processed_rows: int = 0
    error_rows: int = 0
    created_patients: int = 0
    created_medications: int = 0
    created_prescriptions: int = 0
    created_items: int = 0
    scheduled_intakes: int = 0
    timed_out_batches: int = 0
    errors: list[str] = field(default_factory=list)

    def merge(self, other: "ImportStats") -> None:
        for f in fields(self):
            if f.name == "errors":
                self.errors.extend(other.errors)
            else:
                setattr(self, f.name, getattr(self, f.name) + getattr(other, f.name))

    def as_dict(self) -> dict:
        return {f.name: getattr(self, f.name) for f in fields(self)}


def _batches(rows: Iterable[Mapping[str, str]], size: int) -> Iterator[list[tuple[int, Mapping[str, str]]]]:
    batch: list[tuple[int, Mapping[str, str]]] = []
    for row_number, row in enumerate(rows, start=1):
        batch.append((row_number, row))
        if len(batch) >= size:
            yield batch
            batch = []
    if batch:
        yield batch


class BulkDispenseImporter:
    """
    Loads pharmacy dispense rows: patient, medication, prescription and item,
    then the intake schedule of each dispensed item.

    - each batch is one transaction
    - each row runs in a savepoint; a failing row is recorded and skipped
    - a batch running past its deadline is rolled back as a whole, recorded
      and not retried; the deadline is checked between rows
    """

    def __init__(
        self,
        *,
        item_service: Optional[PrescriptionItemService] = None,
        mapper: Optional[DispenseRowMapper] = None,
        logger: Optional[logging.Logger] = None,
        batch_size: int | None = None,
        batch_timeout: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.logger = logger or logging.getLogger(__name__)
        self.item_service = item_service or PrescriptionItemService(logger=self.logger)
        self.mapper = mapper or DispenseRowMapper()
        self.batch_size = max(1, int(batch_size or getattr(settings, "MEDICAPP_IMPORT_BATCH_SIZE", DEFAULT_BATCH_SIZE)))
        self.batch_timeout = float(
            batch_timeout or getattr(settings, "MEDICAPP_IMPORT_BATCH_TIMEOUT", DEFAULT_BATCH_TIMEOUT)
        )
        self.clock = clock

    def run(self, rows: Iterable[Mapping[str, str]], *, actor_user_id: int | None = None) -> ImportStats:
        stats = ImportStats()

        for index, batch in enumerate(_batches(rows, self.batch_size), start=1):
            stats.total_rows += len(batch)
            first_row, last_row = batch[0][0], batch[-1][0]

            try:
                batch_stats = self._run_batch(batch, actor_user_id=actor_user_id)
            except BatchTimeout:
                stats.error_rows += len(batch)
                stats.timed_out_batches += 1
                stats.errors.append(
                    f"Batch {index} (rows {first_row}-{last_row}): timed out after {self.batch_timeout:g}s, rolled back."
                )
                self.logger.error(
                    "imports.batch_timed_out",
                    extra={"batch": index, "first_row": first_row, "last_row": last_row, "timeout": self.batch_timeout},
                )
                continue

            stats.merge(batch_stats)
            self.logger.info(
                "imports.batch_committed",
                extra={
                    "batch": index,
                    "first_row": first_row,
                    "last_row": last_row,
                    "processed_rows": batch_stats.processed_rows,
                    "error_rows": batch_stats.error_rows,
                },
            )

        self.logger.info(
            "imports.finished",
            extra={k: v for k, v in stats.as_dict().items() if k != "errors"},
        )
        return stats

    def _run_batch(self, batch: list[tuple[int, Mapping[str, str]]], *, actor_user_id: int | None) -> ImportStats:
        deadline = self.clock() + self.batch_timeout
        batch_stats = ImportStats()

        with transaction.atomic():
            for row_number, raw in batch:
                if self.clock() > deadline:
                    raise BatchTimeout(row_number)

                row_stats = ImportStats()
                try:
                    with transaction.atomic():
                        self._process_row(self.mapper.map_row(raw, row_number), row_stats, actor_user_id=actor_user_id)
                except (DomainError, DatabaseError) as exc:
                    batch_stats.error_rows += 1
                    message = str(exc)
                    if not message.startswith("Row "):
                        message = f"Row {row_number}: {message}"
                    batch_stats.errors.append(message)
                    self.logger.warning("imports.row_failed", extra={"row": row_number, "error": str(exc)})
                    continue

                row_stats.processed_rows = 1
                batch_stats.merge(row_stats)

            if self.clock() > deadline:
                raise BatchTimeout(batch[-1][0])

        return batch_stats

    def _process_row(self, row: DispenseRow, stats: ImportStats, *, actor_user_id: int | None) -> None:
        patient, created = PatientService.find_or_create(
            document_id=row.patient_document_id,
            full_name=row.patient_name,
            sex=row.patient_sex,
            insurance_type=row.insurance_type,
            patient_type=row.patient_type,
        )
        stats.created_patients += int(created)

        medication, created = PrescriptionService.find_or_create_medication(
            code=row.medication_code,
            description=row.medication_description,
            unit=row.unit,
            duration_days=row.duration,
            price=row.price,
        )
        stats.created_medications += int(created)

        prescription, created = PrescriptionService.find_or_create_prescription(
            number=row.prescription_number,
            patient=patient,
            issued_on=row.requested_on,
            prescriber_name=row.prescriber_name,
        )
        stats.created_prescriptions += int(created)

        _, intakes = self.item_service.create_item(
            prescription=prescription,
            medication=medication,
            requested_quantity=row.requested_quantity,
            dispensed_quantity=row.dispensed_quantity,
            dispatch_date=row.dispatch_date,
            dispatch_time=row.dispatch_time,
            dx_code=row.dx_code,
            dx_description=row.dx_description,
            actor_user_id=actor_user_id,
        )
        stats.created_items += 1
        stats.scheduled_intakes += len(intakes)
