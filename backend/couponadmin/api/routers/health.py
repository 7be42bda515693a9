"""Health check routes."""
from fastapi import APIRouter


router = APIRouter(tags=["Health"])


@router.get("/health")
def health_check():
    """Simple health check endpoint."""
    return {"status": "healthy"}
