"""
Run a CSV submission import from CLI.
"""

from __future__ import annotations

import argparse
import json
import sys
import uuid
from pathlib import Path

from app.errors import ServiceError
from app.logging_utils import configure_logging
from app.services.import_orchestrator_service import (
    ImportOrchestratorService,
    InlineTaskExecutor,
)
from db.models.import_job import ImportMode
from db.session import SessionLocal


def main() -> int:
    parser = argparse.ArgumentParser(description="Stage, validate and optionally commit a CSV import.")
    parser.add_argument("indicator_id", type=uuid.UUID, help="Target indicator id.")
    parser.add_argument("csv_path", type=Path, help="CSV file to import.")
    parser.add_argument(
        "--mode",
        dest="mode",
        choices=sorted(ImportMode.ALL),
        default=ImportMode.CREATE_ONLY,
        help="Import mode.",
    )
    parser.add_argument(
        "--template-id",
        dest="template_id",
        type=uuid.UUID,
        default=None,
        help="Optional import template id; the indicator default is used otherwise.",
    )
    parser.add_argument(
        "--commit",
        action="store_true",
        help="Commit valid rows after validation.",
    )
    parser.add_argument(
        "--errors-out",
        dest="errors_out",
        type=Path,
        default=None,
        help="Optional path for the row error report CSV.",
    )
    args = parser.parse_args()
    configure_logging()

    content = args.csv_path.read_bytes()
    orchestrator = ImportOrchestratorService()
    try:
        with SessionLocal() as db:
            job = orchestrator.create_job(
                db=db,
                indicator_id=args.indicator_id,
                file_name=args.csv_path.name,
                file_size=len(content),
                template_id=args.template_id,
                import_mode=args.mode,
            )
            upload = orchestrator.stage_and_validate(db=db, job_id=job.id, content=content)

            if args.errors_out is not None and upload.summary.error_rows:
                report = orchestrator.build_error_report(db=db, job_id=job.id)
                args.errors_out.write_text(report, encoding="utf-8")

            if args.commit:
                orchestrator.trigger_commit(db=db, job_id=job.id, executor=InlineTaskExecutor())
                db.expire_all()

            status = orchestrator.get_job_status(db=db, job_id=job.id)
    except ServiceError as exc:
        print(json.dumps(exc.to_dict(), indent=2), file=sys.stderr)
        return 1

    print(status.model_dump_json(indent=2))
    return 0 if status.status != "FAILED" else 1


if __name__ == "__main__":
    raise SystemExit(main())
