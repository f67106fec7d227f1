"""Health check endpoints for debugging and monitoring."""

from fastapi import APIRouter
from fastapi.responses import HTMLResponse

from src.utils.settings.app import AppSettings

# Create separate routers for root and health endpoints
root_router = APIRouter()
router = APIRouter(prefix="/health", tags=["health"])


@root_router.get("/")
async def root():
    """Root endpoint with minimal HTML landing page."""
    html_content = """
    <!DOCTYPE html>
    <html lang="en">
    <head>
        <meta charset="UTF-8">
        <meta name="viewport" content="width=device-width, initial-scale=1.0">
        <title>CourseMap API</title>
        <style>
            body {
                font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif;
                min-height: 100vh;
                margin: 0;
                background: #f8f9fa;
                color: #1a5f3f;
                display: flex;
                justify-content: center;
                align-items: center;
                text-align: center;
            }

            .logo {
                font-size: 3rem;
                font-weight: bold;
                letter-spacing: -0.02em;
            }

            .subtitle {
                color: #6b7280;
            }
        </style>
    </head>
    <body>
        <div>
            <div class="logo">CourseMap API</div>
            <p class="subtitle">Marker clustering for the golf course map</p>
        </div>
    </body>
    </html>
    """
    return HTMLResponse(content=html_content, media_type="text/html")


@router.get("/liveness")
async def liveness_check():
    """Simple liveness check - indicates if service is running."""
    return {
        "status": "alive",
        "service": "coursemap-api",
        "version": AppSettings().API_VERSION,
    }
