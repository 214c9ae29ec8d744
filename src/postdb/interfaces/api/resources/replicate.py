"""Replication job endpoints."""

import falcon.asgi

from postdb.application.replication.job_store import ReplicationJobStore
from postdb.domain.entities import ReplicationJob
from postdb.domain.exceptions import ValidationError


def job_to_media(job: ReplicationJob) -> dict:
    return {"id": job.id, **job.to_body()}


class ReplicateResource:
    """POST /_replicate submits (or cancels) a job; GET /_replicate/{job_id} reads it.

    Jobs are only recorded here; a ``postdb replicate`` process runs them.
    """

    def __init__(self, job_store: ReplicationJobStore) -> None:
        self._job_store = job_store
        self._ready = False

    async def _ensure(self) -> None:
        if not self._ready:
            await self._job_store.ensure_collection()
            self._ready = True

    async def on_post(self, req: falcon.asgi.Request, resp: falcon.asgi.Response) -> None:
        body = await req.get_media(default_when_empty=None)
        if not isinstance(body, dict):
            raise ValidationError("Invalid JSON")
        source = body.get("source")
        target = body.get("target")
        if not isinstance(source, str) or not isinstance(target, str):
            raise ValidationError("source and target are required")
        await self._ensure()

        if body.get("cancel"):
            job = await self._job_store.cancel(ReplicationJob.make_id(source, target))
            resp.media = {"ok": True, **job_to_media(job)}
            resp.status = falcon.HTTP_200
            return

        job = await self._job_store.submit(
            source,
            target,
            continuous=bool(body.get("continuous", False)),
            create_target=bool(body.get("create_target", False)),
            restart=bool(body.get("restart", False)),
        )
        resp.media = {"ok": True, **job_to_media(job)}
        resp.status = falcon.HTTP_202

    async def on_get_job(
        self, req: falcon.asgi.Request, resp: falcon.asgi.Response, job_id: str
    ) -> None:
        await self._ensure()
        job = await self._job_store.get(job_id)
        resp.media = job_to_media(job)
        resp.status = falcon.HTTP_200
