from datetime import datetime, timezone

from fastapi import APIRouter

router = APIRouter()


@router.get("/health")
async def health() -> dict[str, str]:
    return {
        "status": "OK",
        "message": "Finance enrichment service running",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
