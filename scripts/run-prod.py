"""
FastAPI Production Server

Run the Chat Relay API in production mode. Host and port come from
HOST / PORT when set.

Usage:
    python scripts/run-prod.py
"""

import sys
import os
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))
os.chdir(project_root)

import uvicorn
from loguru import logger


def main():
    """Start the FastAPI production server"""
    host = os.getenv("HOST", "0.0.0.0")
    port = int(os.getenv("PORT", "8000"))

    logger.info("="*80)
    logger.info("Chat Relay - API Server (Production)")
    logger.info("="*80)
    logger.info(f"Listening on {host}:{port}")
    logger.info("Press CTRL+C to stop the server")
    logger.info("="*80)

    uvicorn.run(
        "src.api.app:app",
        host=host,
        port=port,
        reload=False,
        log_level="info",
        access_log=True
    )


if __name__ == "__main__":
    main()
