"""
Production entrypoint for Landlord Portfolio.

Binds to 0.0.0.0:$PORT.
"""

import logging

import uvicorn

from utils.config import Config

if __name__ == "__main__":
    config = Config.load()
    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    print(f"Starting Landlord Portfolio on port {config.port}")

    # Import app here to ensure clean module loading
    from web.app import create_app

    uvicorn.run(create_app(config=config), host="0.0.0.0", port=config.port)
