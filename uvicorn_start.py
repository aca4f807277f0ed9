#!/usr/bin/env python3
"""
ScopeStack Research Assistant API Server
Uvicorn start script - serves the FastAPI app from api.main
"""

import os

# Load environment variables early
from dotenv import load_dotenv

load_dotenv()

from api.config.settings import IS_PRODUCTION


def main():
    import uvicorn

    uvicorn.run(
        "api.main:app",
        host=os.environ.get("HOST", "0.0.0.0"),
        port=int(os.environ.get("PORT", "8000")),
        reload=not IS_PRODUCTION,
        reload_dirs=["api", "research_agent", "scopestack"],
        reload_delay=0.25,
        log_level="info",
        use_colors=True,
        access_log=True,
    )


# For development server
if __name__ == "__main__":
    main()
