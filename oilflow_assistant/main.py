"""
OilFlow BIDEC ERP Assistant
FastAPI application entry point.
"""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from motor.motor_asyncio import AsyncIOMotorClient

from oilflow_assistant.core.config import get_settings
from oilflow_assistant.routers import chatbot
from oilflow_assistant.services.conversation_store import ConversationStore
from oilflow_assistant.services.pipeline import build_pipeline

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifespan events."""
    settings = get_settings()

    # Startup
    logger.info("Starting OilFlow Assistant...")
    mongo_client = None
    if settings.mongo_url:
        mongo_client = AsyncIOMotorClient(settings.mongo_url)

        # Verify MongoDB connection
        try:
            await mongo_client.admin.command('ping')
            logger.info("MongoDB connected successfully")
        except Exception as e:
            logger.error(f"MongoDB connection failed: {e}")
            raise

        app.state.mongo_client = mongo_client
        app.state.conversation_store = ConversationStore(mongo_client)
    else:
        logger.info("MONGO_URL not set - conversation archive disabled")

    logger.info(f"OilFlow Assistant {settings.app_version} is ready")

    yield

    # Shutdown
    logger.info("Shutting down OilFlow Assistant...")
    if mongo_client:
        mongo_client.close()
    app.state.mongo_client = None
    app.state.conversation_store = None
    logger.info("Shutdown complete")


# Initialize FastAPI application
app = FastAPI(
    title="OilFlow BIDEC ERP Assistant",
    description=(
        "Sales and support assistant for OilFlow BIDEC ERP. "
        "Rule-based intent recognition, lead scoring and human escalation."
    ),
    version=get_settings().app_version,
    lifespan=lifespan,
    docs_url="/api/docs",
    redoc_url="/api/redoc",
)
app.state.pipeline = build_pipeline(get_settings())
app.state.mongo_client = None
app.state.conversation_store = None

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # In production, specify exact domains
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(chatbot.router)


@app.get("/")
async def root():
    """Health check endpoint."""
    settings = get_settings()
    return {
        "service": settings.app_name,
        "version": settings.app_version,
        "status": "operational",
        "default_language": settings.default_language,
    }


@app.get("/health")
async def health_check(request: Request):
    """Detailed health check with dependencies."""
    settings = get_settings()

    # Check MongoDB
    mongo_client = request.app.state.mongo_client
    if mongo_client is None:
        mongo_status = "disabled"
    else:
        try:
            await mongo_client.admin.command('ping')
            mongo_status = "connected"
        except Exception as e:
            mongo_status = f"error: {str(e)}"

    return {
        "service": settings.app_name,
        "version": settings.app_version,
        "status": "healthy",
        "dependencies": {
            "mongodb": mongo_status,
            "escalation_webhook": "configured" if settings.escalation_webhook_url else "missing",
        }
    }


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "oilflow_assistant.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
        log_level="info"
    )
