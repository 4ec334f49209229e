#!/usr/bin/env python3
import argparse
import json
import logging
import sys
from pathlib import Path

from config import get_config
from db.jobs_repository import JobsRepository
from db.record_store import RecordStore
from models.job import to_document
from utils.job_documents import normalize_job_documents

logger = logging.getLogger("import_jobs_export")


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        description="Normalize an exported jobs collection and import it into the record store."
    )
    parser.add_argument(
        "--input",
        required=True,
        help="Path to the JSON export (a list of job documents, or an object keyed by job id).",
    )
    parser.add_argument(
        "--db",
        default=None,
        help="SQLite DB path (default: ACCESSFLOW_DB or data/accessflow.db).",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Only print normalized jobs; do not write to DB.",
    )
    return parser.parse_args(argv)


def load_documents(input_path: Path) -> list:
    data = json.loads(input_path.read_text(encoding="utf-8"))
    if isinstance(data, dict):
        if isinstance(data.get("jobs"), list):
            return data["jobs"]
        # Keyed export: the key is the document id
        documents = []
        for key, value in data.items():
            if isinstance(value, dict):
                value = {"id": key, **value}
            documents.append(value)
        return documents
    if isinstance(data, list):
        return data
    raise ValueError(f"Unsupported export shape in {input_path}: expected a list or object")


def main(argv=None) -> int:
    args = parse_args(argv)
    get_config().setup_logging()

    documents = load_documents(Path(args.input))
    jobs, skipped = normalize_job_documents(documents)
    for entry in skipped:
        logger.warning(f"Skipped document {entry['index']} (id={entry['id']}): {entry['reason']}")

    if args.dry_run:
        print(json.dumps([to_document(job) for job in jobs], ensure_ascii=False, indent=2))
        return 0

    with RecordStore(args.db) as store:
        repo = JobsRepository(store)
        replaced = 0
        for job in jobs:
            if repo.find(job.id) is not None:
                replaced += 1
            repo.save_imported(job)
        store.commit()
        db_path = store.resolved_path

    print(f"normalized: {len(jobs)} skipped: {len(skipped)} replaced: {replaced}")
    print(f"db: {db_path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
