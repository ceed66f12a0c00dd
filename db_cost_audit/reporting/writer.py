"""
Report emission: ranked fleet reports as JSON and CSV files.
"""
import csv
import json
import logging
from pathlib import Path
from typing import Callable, Dict, Iterable, TextIO

from .schema import FIELD_NAMES, to_csv_row, to_record
from ..core.exceptions import OutputWriteError, ValidationError
from ..engine.models import FleetReport

logger = logging.getLogger(__name__)

SUPPORTED_FORMATS = ('json', 'csv')


class ReportWriter:
    """Writes a FleetReport into an output directory."""

    def __init__(self, output_dir: Path, report_name: str = "cost_analysis"):
        """Initialize the report writer.

        Args:
            output_dir: Directory the report files go into (created on write)
            report_name: File name without extension
        """
        self.output_dir = output_dir
        self.report_name = report_name

    def path_for(self, fmt: str) -> Path:
        return self.output_dir / f"{self.report_name}.{fmt}"

    def write(self, report: FleetReport, formats: Iterable[str] = SUPPORTED_FORMATS) -> Dict[str, Path]:
        """Write the report in each requested format.

        Returns:
            Mapping of format to written path

        Raises:
            ValidationError: If a format is not supported
            OutputWriteError: If a file cannot be written
        """
        writers = {'json': self.write_json, 'csv': self.write_csv}
        written = {}
        for fmt in formats:
            if fmt not in writers:
                raise ValidationError(f"Unsupported report format: {fmt}")
            written[fmt] = writers[fmt](report)
        return written

    def write_json(self, report: FleetReport) -> Path:
        """Write the ranked records as a pretty-printed JSON array."""
        records = [to_record(entry) for entry in report.entries]

        def dump(f: TextIO) -> None:
            json.dump(records, f, indent=2)
            f.write('\n')

        return self._write_atomically(self.path_for('json'), dump)

    def write_csv(self, report: FleetReport) -> Path:
        """Write the ranked records as CSV with a header row."""
        def dump(f: TextIO) -> None:
            writer = csv.writer(f)
            writer.writerow(FIELD_NAMES)
            for entry in report.entries:
                writer.writerow(to_csv_row(entry))

        return self._write_atomically(self.path_for('csv'), dump)

    def _write_atomically(self, path: Path, dump: Callable[[TextIO], None]) -> Path:
        """Write through a temp file and move it into place.

        Raises:
            OutputWriteError: If writing fails; the temp file is removed
        """
        temp_file = path.with_suffix(path.suffix + '.tmp')
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(temp_file, 'w', newline='') as f:
                dump(f)
            temp_file.replace(path)
        except (OSError, TypeError, ValueError) as e:
            if temp_file.exists():
                temp_file.unlink()
            raise OutputWriteError(f"Failed to write report {path}: {e}", details=str(e))

        logger.info(f"Wrote report to {path}")
        return path
