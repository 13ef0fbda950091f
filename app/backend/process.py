"""
Backend process module.

Wraps the import pipeline for the CLI and the API: decode file → load store
snapshot → run_import → apply the commit policy → write result JSON.
"""

import json
import os
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional

from app.backend.reader import WorkbookReader
from intake.logger import get_logger
from intake.models import ImportResult
from intake.pipeline import build_config, run_import
from intake.store import PAYMENTS, POLICYHOLDERS, InMemoryRecordStore

logger = get_logger(__name__)


class CommitPolicy(str, Enum):
    NEVER = "never"
    IF_CLEAN = "if-clean"
    ALWAYS = "always"


def ensure_output_dir(output_dir: str) -> Path:
    """Create the output directory when missing."""
    output_path = Path(output_dir).resolve()
    output_path.mkdir(parents=True, exist_ok=True)
    return output_path


# ---------------------------------------------------------------------------
# Store snapshot (JSON file)
# ---------------------------------------------------------------------------

def load_store(store_path: Optional[str]) -> InMemoryRecordStore:
    """Load a JSON snapshot; a missing path gives an empty store."""
    if not store_path:
        return InMemoryRecordStore()
    path = Path(store_path).expanduser()
    if not path.exists():
        logger.info("Store snapshot %s not found; starting empty", path)
        return InMemoryRecordStore()
    data = json.loads(path.read_text(encoding="utf-8") or "{}")
    return InMemoryRecordStore.from_snapshot(data if isinstance(data, dict) else {})


def save_store(store: InMemoryRecordStore, store_path: str) -> str:
    path = Path(store_path).expanduser().resolve()
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(path.suffix + ".tmp")
    tmp.write_text(json.dumps(store.to_snapshot(), ensure_ascii=False, indent=2), encoding="utf-8")
    os.replace(tmp, path)
    return str(path)


# ---------------------------------------------------------------------------
# Commit
# ---------------------------------------------------------------------------

def should_commit(result: ImportResult, policy: CommitPolicy) -> bool:
    if policy == CommitPolicy.ALWAYS:
        return True
    if policy == CommitPolicy.IF_CLEAN:
        return not result.blocking_errors
    return False


def commit_result(result: ImportResult, store: InMemoryRecordStore) -> Dict[str, int]:
    """Upsert policyholders first, then payments. PersistenceError propagates."""
    for holder in result.policyholders:
        store.upsert(POLICYHOLDERS, holder)
    for payment in result.payments:
        store.upsert(PAYMENTS, payment)
    logger.info("Committed %d policyholders, %d payments", len(result.policyholders), len(result.payments))
    return {"policyholders": len(result.policyholders), "payments": len(result.payments)}


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def process_file(
    file_path: str,
    store_path: Optional[str] = None,
    source_format: Optional[str] = None,
    commit: CommitPolicy = CommitPolicy.NEVER,
    profile_path: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Run one import and apply the commit policy.

    Returns a JSON-ready dict: the import result, whether it was committed and
    whether blocking errors prevented a requested commit.

    Raises:
        FormatError: unusable file or workbook structure
        PersistenceError: the store rejected a record during commit
    """
    commit = CommitPolicy(commit)
    workbook = WorkbookReader().read(file_path)
    store = load_store(store_path)
    result = run_import(workbook, store, source_format=source_format, config=build_config(profile_path))

    committed = should_commit(result, commit)
    if committed:
        commit_result(result, store)
        if store_path:
            save_store(store, store_path)
    blocked = commit != CommitPolicy.NEVER and not committed
    if blocked:
        logger.warning("Commit skipped: %d blocking errors", len(result.blocking_errors))

    return {
        "input": str(Path(file_path).name),
        "processed_at": datetime.now().isoformat(timespec="seconds"),
        "commit_policy": commit.value,
        "committed": committed,
        "blocked": blocked,
        "result": result.to_dict(),
    }


def _resolve_output_json_name(output_filename: Optional[str] = None) -> str:
    if output_filename and output_filename.strip():
        return output_filename.strip()
    env_output_name = os.getenv("OUTPUT_JSON_NAME", "").strip()
    if env_output_name:
        return env_output_name
    return f"import_{datetime.now().strftime('%Y%m%d_%H%M%S')}.json"


def write_json_output(
    result: Dict[str, Any],
    output_dir: str,
    output_filename: Optional[str] = None,
) -> str:
    """Write the result dict to output_dir; name from argument or OUTPUT_JSON_NAME."""
    output_path = ensure_output_dir(output_dir)
    json_path = output_path / _resolve_output_json_name(output_filename)
    with open(json_path, "w", encoding="utf-8") as f:
        json.dump(result, f, ensure_ascii=False, indent=2, default=str)
    return str(json_path)
