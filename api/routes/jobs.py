from __future__ import annotations

from fastapi import APIRouter, HTTPException

from api.dependencies import get_repo

router = APIRouter(prefix="/jobs", tags=["jobs"])


@router.get("/{job_id}")
def get_job(job_id: str):
    repo = get_repo()
    job = repo.get_job(job_id)
    if not job:
        raise HTTPException(status_code=404, detail=f"Job not found: {job_id}")
    return {
        "id": job.id,
        "kind": job.kind,
        "location": job.location,
        "state": job.state,
        "phase": job.phase,
        "options": job.options,
        "result": job.result,
        "error_message": job.error_message,
        "created_at": job.created_at,
        "updated_at": job.updated_at,
    }
