#!/usr/bin/env python
"""
Server Entry Point

Usage:
    Development:  python run_server.py --dev
    Production:   python run_server.py --port 4000
"""

import argparse
import os

import uvicorn

from retail_admin.config import get_settings


def run_dev_server(port: int) -> None:
    """Run development server with auto-reload."""
    uvicorn.run(
        "retail_admin.main:app",
        host="127.0.0.1",
        port=port,
        reload=True,
        reload_dirs=["retail_admin"],
        log_level="debug",
    )


def run_prod_server(port: int) -> None:
    """Run production server with Uvicorn workers."""
    settings = get_settings()
    uvicorn.run(
        "retail_admin.main:app",
        host=settings.api_host,
        port=port,
        workers=settings.api_workers,
        log_level=os.getenv("LOG_LEVEL", "info").lower(),
        proxy_headers=True,
        forwarded_allow_ips="*",
        server_header=False,
    )


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Retail Admin API Server")
    parser.add_argument(
        "--dev",
        action="store_true",
        help="Run in development mode with auto-reload",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=None,
        help="Port to run on (default: API_PORT or 4000)",
    )
    args = parser.parse_args()

    port = args.port or get_settings().api_port
    if args.dev:
        run_dev_server(port)
    else:
        run_prod_server(port)
