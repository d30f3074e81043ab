"""
Listing image service - FastAPI application

Run:
    python -m uvicorn webapi.app:app --reload --port 8080
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from imgnorm.logging_setup import configure_logging
from webapi.routers import blobs, images, listings

configure_logging()

app = FastAPI(
    title="Listing Image Service",
    description="Bounded-size image normalization and listing uploads",
    version="1.0.0"
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# API routers
app.include_router(images.router, prefix="/api/v1", tags=["Images"])
app.include_router(listings.router, prefix="/api/v1", tags=["Listings"])
app.include_router(blobs.router, prefix="/api/v1", tags=["Blobs"])


@app.get("/health")
async def health_check():
    """Health check"""
    return {"status": "ok", "message": "Listing image service is running"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("webapi.app:app", host="0.0.0.0", port=8080, reload=True)
