import asyncio
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
from app import config
from app.db import database
from app.models.token import Token
from app.routes import auth_routes, cron_routes, metrics_routes
from app.services.scheduler_service import metrics_scheduler
from app.services.update_service import update_all_metrics
from app.utils.logger import logger

async def run_initial_update():
    try:
        await update_all_metrics()
    except Exception as e:
        logger.error(f"Error in initial Vercel update: {e}", exc_info=True)

@asynccontextmanager
async def lifespan(app: FastAPI):
    if config.IS_SERVERLESS:
        logger.info("Running on Vercel - background updates disabled. Use /api/update endpoint instead.")
        app.state.initial_update = asyncio.create_task(run_initial_update())
    else:
        # A database we cannot reach at startup is fatal for the long-running server
        await database.ping()
        metrics_scheduler.start()
    logger.info(f"Instagram Metrics Server running ({'Vercel' if config.IS_SERVERLESS else 'Local Server'})")
    yield
    logger.info("Shutdown signal received, closing server...")
    metrics_scheduler.stop()
    database.close()

app = FastAPI(title="Instagram Metrics API", version="1.0.0", lifespan=lifespan)

# CORS configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include Routers
app.include_router(auth_routes.router)
app.include_router(metrics_routes.router)
app.include_router(cron_routes.router)

@app.get("/health")
async def health_check():
    try:
        await database.connect()
        # Try a simple query
        await Token.count()
        db_status = "connected"
    except Exception as e:
        db_status = f"error: {str(e)}"

    return {
        "status": "ok" if "error" not in db_status else "degraded",
        "message": "Instagram Metrics Backend is running",
        "database": db_status,
        "initialized": database.is_connected
    }

@app.get("/")
async def root():
    return {"message": "Welcome to the Instagram Metrics API"}

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="0.0.0.0", port=config.PORT)
