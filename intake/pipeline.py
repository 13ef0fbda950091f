"""
Pipeline: thin orchestrator for one import run.

run_import – decoded Workbook + RecordStore → ImportResult

Heavy lifting is delegated to:
  intake.extractors – ExtractorRegistry, format detection, per-format extraction
  intake.reconcile  – insert/update decisions and identity allocation
  intake.rules      – suffix codes, premiums, dependent validation

The pipeline never writes to the store. Only a FormatError escapes; every
other problem is returned in ``ImportResult.errors``.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from intake.config import get_settings
from intake.extractors import ExtractorRegistry, RunContext
from intake.logger import get_logger
from intake.mapping import DEFAULT_CONFIG, ImportConfig
from intake.models import ImportResult
from intake.profile_loader import load_import_config
from intake.store import RecordStore
from intake.workbook import Workbook

logger = get_logger(__name__)


def build_config(profile_path: Optional[str] = None) -> ImportConfig:
    """Defaults, then environment settings, then the YAML profile (if any)."""
    settings = get_settings()
    cfg = settings.import_config(DEFAULT_CONFIG)
    path = profile_path if profile_path is not None else settings.INTAKE_PROFILE_PATH
    if path:
        cfg = load_import_config(path, cfg)
    return cfg


def run_import(
    workbook: Workbook,
    store: RecordStore,
    source_format: Optional[str] = None,
    config: Optional[ImportConfig] = None,
    now: Optional[datetime] = None,
    registry: Optional[ExtractorRegistry] = None,
) -> ImportResult:
    """
    Transform *workbook* into normalised entities against *store*.

    Steps:
      1. Resolve the source format (detect when not given)
      2. Extract, link and reconcile through the format's extractor
      3. Assemble the ImportResult with every issue collected on the way

    Raises:
        FormatError: the workbook structure is unusable
    """
    cfg = config or build_config()
    registry = registry or ExtractorRegistry()
    ctx = RunContext(cfg=cfg, store=store, now=now or datetime.now())

    fmt = registry.resolve(workbook, cfg, source_format)
    logger.info("run_import: %s (%d sheets) as %s", workbook.filename or "<workbook>", len(workbook), fmt)

    output = registry.extract(fmt, workbook, ctx)
    result = ImportResult(
        source_format=fmt,
        policyholders=output.policyholders,
        participants=output.participants,
        payments=output.payments,
        errors=ctx.collector.issues,
        decisions=output.decisions,
    )
    summary = result.summary()
    logger.info(
        "run_import done: %d policyholders (%d new, %d updated), %d payments, %d errors, %d warnings",
        summary["policyholders"], summary["inserted"], summary["updated"],
        summary["payments"], summary["errors"], summary["warnings"],
    )
    return result
