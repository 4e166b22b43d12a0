# backend/glbiashara/scripts/seed_directory.py

"""
Seed the Glbiashara directory (providers, clubs, institutions, companies)
from a JSON file.

Usage examples:

  # Default: seed the launch directory shipped with the package
  cd backend
  python -m glbiashara.scripts.seed_directory

  # Seed a specific file
  python -m glbiashara.scripts.seed_directory --file path/to/directory.json

The file holds one list per kind:

  {"providers": [...], "clubs": [...], "institutions": [...], "companies": [...]}

Entries are matched by slug: existing rows are updated, new ones created.
Content blobs are validated before anything is written.
"""

import argparse
import json
from pathlib import Path

from pydantic import ValidationError
from sqlalchemy.orm import Session

from glbiashara.database import SessionLocal
from glbiashara import models
from glbiashara.schemas.directory import (
    ProviderContent,
    ServiceBundle,
    ClubContent,
    InstitutionContent,
    CompanyContent,
)

BASE_DIR = Path(__file__).resolve().parent.parent

DEFAULT_FILE = BASE_DIR / "data" / "directory_seed.json"

# JSON section -> (model, content schema, scalar fields copied as-is)
SECTIONS = {
    "providers": (models.Provider, ProviderContent, ("name", "logo")),
    "clubs": (models.Club, ClubContent, ("name", "sport", "logo")),
    "institutions": (models.Institution, InstitutionContent, ("name", "level", "logo")),
    "companies": (models.Company, CompanyContent, ("name", "industry", "logo")),
}


def load_directory(path: Path) -> dict:
    if not path.exists():
        raise FileNotFoundError(f"Seed file not found: {path}")

    print(f"[seed_directory] Loading directory from: {path}")
    with path.open("r", encoding="utf-8") as f:
        data = json.load(f)

    if not isinstance(data, dict):
        raise ValueError(f"Expected an object with directory sections in {path}, got {type(data)}")

    return data


def validate_entry(section: str, entry: dict) -> None:
    """Raise ValueError if an entry is missing its slug or has malformed content."""
    _, content_schema, _ = SECTIONS[section]
    if not entry.get("slug") or not entry.get("name"):
        raise ValueError(f"[{section}] every entry needs a name and a slug: {entry}")
    try:
        if entry.get("content") is not None:
            content_schema.model_validate(entry["content"])
        for bundle in entry.get("services") or []:
            ServiceBundle.model_validate(bundle)
    except ValidationError as e:
        raise ValueError(f"[{section}:{entry['slug']}] invalid content: {e}") from e


def upsert_section(db: Session, section: str, entries: list[dict]) -> tuple[int, int]:
    model, _, fields = SECTIONS[section]
    created = updated = 0
    seen_slugs = set()

    for entry in entries:
        validate_entry(section, entry)
        # Pending rows are not flushed, so the slug lookup below cannot catch repeats
        if entry["slug"] in seen_slugs:
            raise ValueError(f"[{section}] duplicate slug in seed file: {entry['slug']}")
        seen_slugs.add(entry["slug"])
        row = db.query(model).filter(model.slug == entry["slug"]).first()
        if row is None:
            row = model(slug=entry["slug"])
            db.add(row)
            created += 1
        else:
            updated += 1

        for field in fields:
            if field in entry:
                setattr(row, field, entry[field])
        if "content" in entry:
            row.content = entry["content"]
        if section == "providers" and "services" in entry:
            row.services = entry["services"]
        row.is_active = entry.get("is_active", True)

    return created, updated


def seed_directory(data: dict, db: Session = None) -> dict:
    """Upsert every section of data. Returns {section: (created, updated)}."""
    own_session = db is None
    if own_session:
        db = SessionLocal()

    try:
        summary = {}
        for section in SECTIONS:
            entries = data.get(section) or []
            summary[section] = upsert_section(db, section, entries)
        db.commit()
        return summary
    except Exception:
        db.rollback()
        raise
    finally:
        if own_session:
            db.close()


def main():
    parser = argparse.ArgumentParser(
        description="Seed the Glbiashara directory from a JSON file."
    )
    parser.add_argument(
        "--file",
        "-f",
        dest="file",
        help="Path to a directory JSON file. Defaults to the bundled launch directory.",
    )

    args = parser.parse_args()
    path = Path(args.file).resolve() if args.file else DEFAULT_FILE

    summary = seed_directory(load_directory(path))
    for section, (created, updated) in summary.items():
        print(f"[seed_directory] {section}: Created={created}, Updated={updated}")


if __name__ == "__main__":
    main()
