"""
Liveness endpoint.
"""

from fastapi import APIRouter, Response, status

router = APIRouter(tags=["health"])


@router.get("/ready")
async def ready() -> Response:
    """Return 200 with an empty body once startup seeding has completed."""
    return Response(status_code=status.HTTP_200_OK)
