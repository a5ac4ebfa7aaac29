from __future__ import annotations

import csv
import io
from pathlib import Path
from typing import Iterable

from devloop.models import IterationRecord
from devloop.utils.io import write_text


def write_iteration_summary(path: Path, records: Iterable[IterationRecord]) -> None:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(["iteration", "status", "files_written", "files_failed", "description"])
    for record in records:
        if record.skipped:
            writer.writerow([record.ordinal, "unparsable_response", 0, 0, ""])
            continue
        report = record.apply_report
        outcome = record.test_outcome
        status = "passed" if outcome and outcome.passed else "failed"
        writer.writerow(
            [
                record.ordinal,
                status,
                len(report.written) if report else 0,
                len(report.failed) if report else 0,
                (record.description or "").strip(),
            ]
        )
    write_text(path, buffer.getvalue())
