import os
import uuid
from fastapi import APIRouter, Depends, UploadFile, File, HTTPException
from typing import Optional
from app.context import AppContext
from api.deps import get_ctx
from domain.schemas import UploadResponse

router = APIRouter()


async def _read_checked(f: UploadFile, max_bytes: int) -> bytes:
    content = await f.read(max_bytes + 1)
    if not content:
        raise HTTPException(status_code=400, detail=f"File is empty: {f.filename}")
    if len(content) > max_bytes:
        raise HTTPException(
            status_code=400,
            detail=f"File exceeds the {max_bytes} byte upload limit: {f.filename}")
    return content


@router.post("/upload", response_model=UploadResponse)
async def upload(cv: Optional[UploadFile] = File(default=None),
                 report: Optional[UploadFile] = File(default=None),
                 ctx: AppContext = Depends(get_ctx)) -> UploadResponse:
    if not cv and not report:
        raise HTTPException(
            status_code=400, detail="Upload at least one file: 'cv' or 'report'")
    for f in (cv, report):
        if f and not (f.filename or "").lower().endswith(".pdf"):
            raise HTTPException(
                status_code=400, detail=f"Only PDF files are accepted: {f.filename}")

    # validate every file before writing any of them
    max_bytes = ctx.settings.MAX_UPLOAD_BYTES
    contents = {}
    for ftype, f in (("cv", cv), ("report", report)):
        if f:
            contents[ftype] = (f, await _read_checked(f, max_bytes))

    storage_dir = ctx.settings.STORAGE_DIR
    os.makedirs(storage_dir, exist_ok=True)
    resp = UploadResponse()

    for ftype, (f, content) in contents.items():
        name = f.filename or "uploaded.pdf"
        stored = f"{uuid.uuid4().hex[:8]}_{os.path.basename(name).replace(' ', '_')}"
        path = os.path.join(storage_dir, stored)
        with open(path, "wb") as out:
            out.write(content)
        file_id = ctx.files_repo.save(ftype=ftype, path=path, name=name)
        if ftype == "cv":
            resp.cv_id = file_id
        else:
            resp.report_id = file_id
    return resp
