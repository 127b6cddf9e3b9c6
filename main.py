import os
import uvicorn
import logging
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from src.api.routes import router
from src.config.settings import settings

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

# Create FastAPI app
app = FastAPI(
    title="Voice Receptionist Knowledge API",
    description="Per-tenant knowledge-base retrieval for a voice receptionist",
    version="1.0.0"
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include router with prefix
app.include_router(router, prefix="/api/v1", include_in_schema=True)

# Health check route
@app.get("/health")
async def health():
    return {"status": "healthy"}

# Root route
@app.get("/")
async def root():
    return {
        "message": "Voice Receptionist Knowledge API",
        "documentation": "/docs",
        "health": "/health"
    }

if __name__ == "__main__":
    # Get port from environment or use default
    port = int(os.getenv("PORT", 8000))

    # Run application
    uvicorn.run("main:app", host="0.0.0.0", port=port, reload=True)
