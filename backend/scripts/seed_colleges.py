"""CLI script to load colleges from a JSON file into the backend DB.
Usage: python scripts/seed_colleges.py colleges.json [--skip-existing]

The file must hold a list of objects with the `CollegeIn` fields
(`name`, `location`, and optionally `acceptance_rate`, `sat_range`, ...).
"""
import sys
import json
import argparse
import pathlib
from typing import List
# Ensure `backend/` is on sys.path so `collegeplan` imports work when running this script directly
ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))
from pydantic import ValidationError
from sqlmodel import Session
from collegeplan.database import engine, create_db_and_tables
from collegeplan import models, repositories
from collegeplan.schemas import CollegeIn


def load_colleges(path: pathlib.Path) -> List[CollegeIn]:
    """Parse `path` and validate each entry; raise ValueError on a bad file."""
    data = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(data, list):
        raise ValueError("expected a JSON list of colleges")
    out = []
    for idx, item in enumerate(data):
        try:
            out.append(CollegeIn.model_validate(item))
        except ValidationError as e:
            raise ValueError(f"entry {idx}: {e.errors()[0]['msg']}") from e
    return out


def main(path: pathlib.Path, skip_existing: bool = False):
    """Insert every college in `path`, printing a one-line summary.

    With `skip_existing`, colleges whose exact name is already stored are
    left alone.
    """
    colleges = load_colleges(path)
    create_db_and_tables()
    created = 0
    skipped = 0
    with Session(engine) as session:
        repo = repositories.CollegeRepository(session)
        for c in colleges:
            if skip_existing and any(row.name == c.name for row in repo.find_all(search=c.name)):
                skipped += 1
                continue
            repo.create(models.College(**c.model_dump()))
            created += 1
    print(f'Created {created} colleges, skipped {skipped}')
    return created, skipped


if __name__ == '__main__':
    parser = argparse.ArgumentParser()
    parser.add_argument('path', type=pathlib.Path, help='JSON file with a list of colleges')
    parser.add_argument('--skip-existing', action='store_true', help='Skip colleges whose name already exists')
    args = parser.parse_args()
    main(args.path, skip_existing=args.skip_existing)
