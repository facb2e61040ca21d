#!/usr/bin/env python
"""Start the FastAPI application on the port given by the environment."""
import os
import uvicorn

if __name__ == "__main__":
    # Get port from environment, default to 8000
    port = int(os.environ.get("PORT", 8000))

    print(f"Starting Catalog Explorer on port {port}")

    uvicorn.run(
        "catalog_explorer.main:app",
        host="0.0.0.0",
        port=port,
        log_level=os.environ.get("LOG_LEVEL", "info").lower()
    )
