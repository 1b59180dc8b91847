from fastapi import APIRouter, Request

from blooddash.core.realtime import change_feed

router = APIRouter()


@router.get("/health")
async def health(request: Request):
    rid = getattr(request.state, "request_id", None)
    return {"status": "ok", "request_id": rid, "subscribers": change_feed.subscriber_count()}
