from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
from datetime import datetime
import logging
import os

from dotenv import load_dotenv

# Configure Logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s",
    handlers=[logging.StreamHandler()]
)
logger = logging.getLogger(__name__)

# Load .env from the script's directory before the module reads its settings
env_path = os.path.join(os.path.dirname(os.path.abspath(__file__)), ".env")
load_dotenv(dotenv_path=env_path)

try:
    from backend.school_module import init_school_module, register_exception_handlers, router as school_router
    from backend.school_module.config import settings
except ImportError:
    from school_module import init_school_module, register_exception_handlers, router as school_router
    from school_module.config import settings


@asynccontextmanager
async def lifespan(app: FastAPI):
    try:
        logger.info("Initializing school module...")
        init_school_module()
        logger.info("School module initialized.")
    except Exception as e:
        logger.error(f"Startup school module error: {e}")
        raise
    yield
    logger.info("Shutting down...")


app = FastAPI(title="School Dashboard API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)
app.include_router(school_router)


@app.get("/api/health")
async def health_check():
    return {
        "status": "ok",
        "message": "School Dashboard API is running",
        "timestamp": datetime.now().isoformat(),
    }


if __name__ == "__main__":
    import uvicorn
    # Set BACKEND_RELOAD=true explicitly if hot reload is needed.
    reload_enabled = os.getenv("BACKEND_RELOAD", "false").lower() == "true"
    backend_host = os.getenv("BACKEND_HOST", "127.0.0.1")
    backend_port = int(os.getenv("BACKEND_PORT", "8000"))
    try:
        uvicorn.run(app, host=backend_host, port=backend_port, reload=reload_enabled)
    except OSError as e:
        if "address already in use" in str(e).lower():
            print(f"[Startup Error] Port {backend_port} is already in use. Set BACKEND_PORT to another port.")
        raise
