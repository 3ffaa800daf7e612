from datetime import date

from fastapi import APIRouter, HTTPException, Request, status

from ..database import ping

router = APIRouter(tags=["health"])


@router.get("/")
async def root():
    """Health check endpoint"""
    return {"message": "Billing API is running", "status": "healthy"}


@router.get("/api/health")
async def health_check(request: Request):
    """Detailed health check with database connectivity"""
    if not await ping(request.app.state.engine):
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Service unavailable: database unreachable",
        )
    return {
        "status": "healthy",
        "database": "connected",
        "timestamp": date.today().isoformat(),
    }
