"""FastAPI dependencies"""
from fastapi import HTTPException, Request, status

from antar.services.container import ServiceContainer


def get_container(request: Request) -> ServiceContainer:
    """The service container the lifespan stored on app.state"""
    container = getattr(request.app.state, "container", None)
    if container is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Service not ready"
        )
    return container
