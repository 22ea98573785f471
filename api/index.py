"""
Serverless entry point (Vercel) for the agenda API.

The platform imports ``app`` from this module; routes are served under /api while
the landing page stays at /.
"""
from app.core.config import Settings
from app.main import create_app

app = create_app(Settings(api_prefix="/api", platform="vercel"))
