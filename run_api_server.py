"""
FastAPI Server Startup Script
Run this to start the Billing API server
"""

import uvicorn
from dotenv import load_dotenv

from billing_server.config import get_settings

# Load environment variables
load_dotenv()


def main():
    """Start the FastAPI server"""
    settings = get_settings()

    print("Starting Billing API Server...")
    print(f"Server will run on: http://{settings.server_host}:{settings.server_port}")
    print(f"API Documentation: http://{settings.server_host}:{settings.server_port}/docs")
    print(f"Health Check: http://{settings.server_host}:{settings.server_port}/api/health")

    uvicorn.run(
        "billing_server.main:create_app",
        factory=True,
        host=settings.server_host,
        port=settings.server_port,
        log_level=settings.log_level.lower(),
        access_log=True,
    )


if __name__ == "__main__":
    main()
