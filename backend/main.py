# backend/main.py
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from dotenv import load_dotenv
import logging

load_dotenv()

from config import settings
from database import init_db
from utils.errors import register_exception_handlers

# Routers
from routes.auth import router as auth_router
from routes.categories import router as categories_router
from routes.leave_requests import router as leave_requests_router

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Create tables that do not exist yet; schema changes go through alembic
init_db()

app = FastAPI(title="Leave Management API", version="1.0.0")

# CORS Configuration
# The session cookie travels cross-site, so origins must be explicit (no "*") with credentials
origins = [
    "http://localhost:5173",
    "http://127.0.0.1:5173",
]
if settings.FRONTEND_URL and settings.FRONTEND_URL not in origins:
    origins.append(settings.FRONTEND_URL)

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

# Register routers
app.include_router(auth_router)
app.include_router(categories_router)
app.include_router(leave_requests_router)

logger.info("Leave Management API ready (environment=%s)", settings.ENVIRONMENT)

@app.get("/")
def read_root():
    return {"message": "Leave Management API is running"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host="0.0.0.0", port=settings.PORT, reload=not settings.is_production)
