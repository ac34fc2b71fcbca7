# agente_gateway/api/deps.py

from fastapi import HTTPException, Request, status

from agente_gateway.modules.gateway.services import GatewayService, GatewayServices


async def get_services(request: Request) -> GatewayServices:
    """FastAPI dependency: servicios creados en el lifespan."""
    services = getattr(request.app.state, "services", None)
    if services is None:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Services not initialized")
    return services


async def get_gateway_service(request: Request) -> GatewayService:
    services = await get_services(request)
    if services.gateway is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Database connection not available (Supabase not configured)",
        )
    return services.gateway
