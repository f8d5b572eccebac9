"""
Migrate an OKR document to the current schema.

Fills defaults for documents written by older versions (no history, no
confidence, legacy ``created`` keys) and stamps ``schemaVersion``.

Default mode is dry-run.
"""
from __future__ import annotations

import argparse
import json
import shutil
import sys
from datetime import datetime
from pathlib import Path
from typing import Dict, Tuple

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from okr.models import SCHEMA_VERSION, Document  # noqa: E402
from okr.store import DocumentStore, default_document_path  # noqa: E402


def normalize_document_file(src: Path) -> Tuple[Document, Dict[str, object]]:
    """
    Read src and normalize it without writing anything.
    """
    report: Dict[str, object] = {
        "parse_error": False,
        "changed": False,
        "schema_before": "legacy_or_missing",
        "objectives": 0,
        "key_results": 0,
        "history": 0,
    }

    raw_text = src.read_text(encoding="utf-8")
    try:
        raw = json.loads(raw_text)
    except json.JSONDecodeError:
        report["parse_error"] = True
        return Document(), report

    if isinstance(raw, dict):
        report["schema_before"] = str(raw.get("schemaVersion", "legacy_or_missing"))

    document = Document.from_dict(raw)
    report["changed"] = document.to_dict() != raw
    report["objectives"] = len(document.objectives)
    report["key_results"] = sum(len(o.key_results) for o in document.objectives)
    report["history"] = len(document.history)
    return document, report


def _backup_path(path: Path) -> Path:
    stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    return path.with_name(f"{path.stem}.backup_{stamp}{path.suffix}")


def migrate(
    src: Path,
    dest: Path | None = None,
    apply: bool = False,
    backup: bool = True,
) -> int:
    if not src.exists():
        print(f"[skip] source document not found: {src}")
        return 0

    document, report = normalize_document_file(src)

    print("=== OKR Document Migration Report ===")
    print(f"source: {src}")
    print(f"target schemaVersion: {SCHEMA_VERSION}")
    print(f"schema before: {report['schema_before']}")
    print(f"objectives: {report['objectives']}")
    print(f"key results: {report['key_results']}")
    print(f"history entries: {report['history']}")
    print(f"changed: {report['changed']}")

    if report["parse_error"]:
        print("[abort] document is not valid JSON; fix raw file before migrating")
        return 1

    if not apply:
        print("\n[dry-run] no files changed")
        return 0

    target = dest.resolve() if dest else src.resolve()
    if target == src.resolve() and backup:
        backup_file = _backup_path(src)
        shutil.copy2(src, backup_file)
        print(f"[backup] {backup_file}")

    DocumentStore(target).save(document)
    print(f"[done] migrated document: {target}")
    return 0


def main() -> None:
    parser = argparse.ArgumentParser(description="Migrate OKR document to the current schema.")
    parser.add_argument(
        "--src",
        type=Path,
        default=default_document_path(),
        help="source document path",
    )
    parser.add_argument(
        "--dest",
        type=Path,
        default=None,
        help="destination path (default: overwrite source when --apply)",
    )
    parser.add_argument(
        "--apply",
        action="store_true",
        help="apply migration changes (default is dry-run)",
    )
    parser.add_argument(
        "--no-backup",
        action="store_true",
        help="when applying in-place, do not create backup file",
    )
    args = parser.parse_args()

    raise SystemExit(
        migrate(
            src=args.src,
            dest=args.dest,
            apply=args.apply,
            backup=not args.no_backup,
        )
    )


if __name__ == "__main__":
    main()
