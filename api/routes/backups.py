from __future__ import annotations

import uuid
from dataclasses import asdict

from fastapi import APIRouter, BackgroundTasks, File, Form, HTTPException, Response, UploadFile

from novel_reader.backup import (
    MIME_TYPE,
    BackupJobKind,
    BackupJobRecord,
    FormatError,
    RestoreOptions,
    generate_backup_file_name,
)

from api.dependencies import build_worker, get_job_queue, get_manager, get_repo, get_storage, get_worker_config

router = APIRouter(prefix="/backups", tags=["backups"])


def _new_job_id(kind: BackupJobKind) -> str:
    return f"{kind.value}-{uuid.uuid4().hex[:12]}"


def _dispatch(background_tasks: BackgroundTasks, job_id: str) -> None:
    queue = get_job_queue()
    if queue is not None:
        queue.enqueue_backup_job(job_id, get_worker_config())
    else:
        background_tasks.add_task(_run_job, job_id)


def _run_job(job_id: str) -> None:
    build_worker().run_job(job_id)


async def _read_upload(file: UploadFile) -> bytes:
    payload = await file.read()
    if not payload:
        raise HTTPException(status_code=400, detail="Uploaded file is empty")
    return payload


@router.get("")
def list_backups():
    storage = get_storage()
    return [
        {"name": path.name, "location": str(path.relative_to(storage.paths.root)), "size_bytes": path.stat().st_size}
        for path in storage.list_backups()
    ]


@router.get("/export")
def download_export():
    data = get_manager().export_bytes()
    file_name = generate_backup_file_name()
    return Response(
        content=data,
        media_type=MIME_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{file_name}"'},
    )


@router.post("/export")
def enqueue_export(background_tasks: BackgroundTasks):
    job_id = _new_job_id(BackupJobKind.EXPORT)
    location = str(get_storage().paths.backup_path(generate_backup_file_name()).relative_to(get_storage().paths.root))
    get_repo().save_job(BackupJobRecord(id=job_id, kind=BackupJobKind.EXPORT, location=location))
    _dispatch(background_tasks, job_id)
    return {"job_id": job_id, "location": location}


@router.post("/preview")
async def preview_backup(file: UploadFile = File(...)):
    payload = await _read_upload(file)
    try:
        metadata = get_manager().read_metadata_bytes(payload)
    except FormatError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return asdict(metadata)


@router.post("/restore")
async def restore_backup(
    background_tasks: BackgroundTasks,
    file: UploadFile = File(...),
    restore_library: bool = Form(True),
    restore_bookmarks: bool = Form(True),
    restore_history: bool = Form(True),
    restore_statistics: bool = Form(True),
    restore_settings: bool = Form(True),
    merge_with_existing: bool = Form(True),
):
    payload = await _read_upload(file)
    options = RestoreOptions(
        restore_library=restore_library,
        restore_bookmarks=restore_bookmarks,
        restore_history=restore_history,
        restore_statistics=restore_statistics,
        restore_settings=restore_settings,
        merge_with_existing=merge_with_existing,
    )

    storage = get_storage()
    job_id = _new_job_id(BackupJobKind.RESTORE)
    saved = storage.save_upload(f"{job_id}-{file.filename or 'backup'}", payload)
    location = str(saved.relative_to(storage.paths.root))
    get_repo().save_job(
        BackupJobRecord(id=job_id, kind=BackupJobKind.RESTORE, location=location, options=asdict(options))
    )

    _dispatch(background_tasks, job_id)
    return {"job_id": job_id, "location": location}
