"""
MODULE_DESCRIPTION: CORS and Compression Middleware

===================================================================================
PURPOSE AND OVERVIEW
===================================================================================

1. CORS Middleware:
   - Lets the browser frontend call the API from another origin
   - Origins come from CORS_ORIGINS (comma separated, default "*")
   - Credentials are only allowed with an explicit origin list; browsers
     reject "*" combined with credentials

2. Brotli Compression Middleware:
   - Compresses JSON responses of 1000 bytes or more
   - The research endpoint is excluded: it streams Server-Sent Events and
     each event must reach the client as soon as it is written

Registration in main.py:
    setup_cors_middleware(app)
    setup_brotli_middleware(app)
"""

# Load environment variables early
from dotenv import load_dotenv

load_dotenv()

from brotli_asgi import BrotliMiddleware
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.config.settings import CORS_ORIGINS
from api.utils.debug import print__startup_debug

# Regexes matched against the request path
STREAMING_PATHS = [r"^/api/research$"]


def setup_cors_middleware(app: FastAPI):
    print__startup_debug(f"📋 Registering CORS middleware for origins: {CORS_ORIGINS}")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_credentials="*" not in CORS_ORIGINS,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )


def setup_brotli_middleware(app: FastAPI):
    print__startup_debug("📋 Registering Brotli compression middleware...")
    app.add_middleware(
        BrotliMiddleware,
        minimum_size=1000,
        excluded_handlers=STREAMING_PATHS,
    )
