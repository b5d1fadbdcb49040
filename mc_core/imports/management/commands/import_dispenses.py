import csv
from pathlib import Path

from django.core.management.base import BaseCommand, CommandError

from mc_core.imports.services import BulkDispenseImporter


class Command(BaseCommand):
    help = "Import a pharmacy dispense export (; delimited CSV) and schedule the intakes"

    def add_arguments(self, parser):
        parser.add_argument("csv_path", type=str)
        parser.add_argument("--batch-size", type=int, default=None, help="Rows per transaction.")
        parser.add_argument("--timeout", type=float, default=None, help="Seconds allowed per batch.")
        parser.add_argument("--delimiter", type=str, default=";")
        parser.add_argument("--encoding", type=str, default="utf-8-sig")

    def _read_rows(self, path: Path, *, encoding: str, delimiter: str) -> list[dict]:
        # whole file is decoded before any batch commits
        try:
            with path.open(newline="", encoding=encoding) as fh:
                return list(csv.DictReader(fh, delimiter=delimiter))
        except UnicodeDecodeError:
            raise CommandError(f"Cannot decode {path} as {encoding}; try --encoding latin-1")
        except LookupError:
            raise CommandError(f"Unknown encoding: {encoding}")
        except csv.Error as exc:
            raise CommandError(f"Malformed CSV in {path}: {exc}")

    def handle(self, *args, **options):
        path = Path(options["csv_path"])
        if not path.is_file():
            raise CommandError(f"File not found: {path}")

        rows = self._read_rows(path, encoding=options["encoding"], delimiter=options["delimiter"])

        importer = BulkDispenseImporter(batch_size=options["batch_size"], batch_timeout=options["timeout"])
        stats = importer.run(rows)

        for error in stats.errors:
            self.stderr.write(error)

        summary = (
            f"Rows: {stats.total_rows} total, {stats.processed_rows} imported, {stats.error_rows} failed. "
            f"Created {stats.created_patients} patients, {stats.created_medications} medications, "
            f"{stats.created_prescriptions} prescriptions, {stats.created_items} items, "
            f"{stats.scheduled_intakes} intakes."
        )
        if stats.error_rows:
            self.stdout.write(self.style.WARNING(summary))
        else:
            self.stdout.write(self.style.SUCCESS(summary))
