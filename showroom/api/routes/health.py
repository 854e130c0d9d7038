from __future__ import annotations

from fastapi import APIRouter, Request

router = APIRouter(tags=["Health"])


@router.get("/health")
def health_check(request: Request) -> dict:
    """Liveness check for load balancers.

    Also reports whether the search index is built, since a process without
    an index still answers searches through the slower linear scan.
    """

    return {
        "status": "ok",
        "vehicles": len(request.app.state.inventory),
        "index_ready": request.app.state.search_indexer.has_index,
    }
