# agente_gateway/api/v1.py
from fastapi import APIRouter

from agente_gateway.api.endpoints import gemini, mail, openai, status, supabase, whatsapp

api_router = APIRouter()

api_router.include_router(supabase.router, prefix="/supabase", tags=["Supabase"])
api_router.include_router(gemini.router, prefix="/gemini", tags=["IA"])
api_router.include_router(openai.router, prefix="/openai", tags=["IA"])
api_router.include_router(mail.router, prefix="/mail", tags=["Correo"])
api_router.include_router(whatsapp.router, prefix="/whatsapp", tags=["WhatsApp"])
api_router.include_router(status.router, prefix="/status", tags=["Status & Health"])
