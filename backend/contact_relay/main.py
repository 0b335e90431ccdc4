# contact_relay/main.py
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.routing import APIRoute
from starlette.exceptions import HTTPException as StarletteHTTPException
import logging

from contact_relay.core.settings import settings
from contact_relay.routers.contact import method_not_allowed_handler, router as contact_router
from contact_relay.routers.health import router as health_router

app = FastAPI(title=settings.api_title)
app.add_exception_handler(StarletteHTTPException, method_not_allowed_handler)

# The landing page posts cross-origin; credentials are never sent
app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in settings.cors_origins.split(",") if o.strip()],
    allow_credentials=False,
    allow_methods=["POST"],
    allow_headers=["*"],
)

logging.getLogger("uvicorn.error").info(
    f"[main] contact endpoint = {settings.contact_path}, recipient = {settings.contact_recipient}"
)

# Routers
app.include_router(contact_router)
app.include_router(health_router)

@app.get("/__routes")
async def __routes():
    return [
        {"methods": sorted(list(r.methods)), "path": r.path}
        for r in app.routes
        if isinstance(r, APIRoute)
    ]
