"""
API module.

FastAPI backend: ``POST /import`` runs a dry-run import of an uploaded
spreadsheet against the configured store snapshot; ``GET /health`` is a
liveness probe. Nothing is committed through the API.
"""

import os
import shutil
import tempfile
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, File, Form, HTTPException, UploadFile
from fastapi.responses import JSONResponse

from app.backend.process import CommitPolicy, process_file
from intake.errors import FormatError
from intake.extractors import AUTO
from intake.logger import get_logger

logger = get_logger(__name__)

app = FastAPI(title="Policy Intake Backend")


def _store_path() -> Optional[str]:
    return os.getenv("INTAKE_STORE_PATH", "").strip() or None


@app.get("/health")
def health():
    return {"status": "ok"}


@app.post("/import")
async def import_endpoint(
    file: UploadFile = File(...),
    source_format: str = Form(default=AUTO),
):
    """Upload one spreadsheet; returns the import result and its issues."""
    if not file.filename:
        raise HTTPException(status_code=400, detail="No file provided")

    upload_dir = Path(tempfile.mkdtemp(prefix="intake_"))
    try:
        dest = upload_dir / Path(file.filename).name
        dest.write_bytes(await file.read())
        output = process_file(
            file_path=str(dest),
            store_path=_store_path(),
            source_format=source_format,
            commit=CommitPolicy.NEVER,
        )
    except FormatError as exc:
        logger.info("Rejected upload %s: %s", file.filename, exc.message)
        raise HTTPException(status_code=422, detail=exc.to_dict()) from exc
    finally:
        shutil.rmtree(upload_dir, ignore_errors=True)

    return JSONResponse(output)
