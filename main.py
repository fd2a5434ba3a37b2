import logging
from os import getenv

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.routers.auth import router as auth_router
from app.routers.invitation import router as invitation_router
from app.routers.proposal import router as proposal_router
from app.dependencies.error_handlers import register_error_handlers

logging.basicConfig(
    level=getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(title="BHAP Tracker")

# Global exception handlers
register_error_handlers(app)

# CORS
cors_origins = getenv("CORS_ORIGINS", "*")
if cors_origins == "*":
    origins = ["*"]
    allow_credentials = False
else:
    origins = [origin.strip() for origin in cors_origins.split(",")]
    allow_credentials = True

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=allow_credentials,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.get("/")
async def root():
    return {"message": "BHAP Tracker"}

@app.get("/health")
async def health():
    return {"status": "ok"}

app.include_router(auth_router, prefix="/auth", tags=["auth"])
app.include_router(proposal_router, prefix="/v1")
app.include_router(invitation_router)
