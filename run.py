"""Entry point for the EventPros API.

Starts the FastAPI application with Uvicorn.  Intended to be executed
from the project root, for example under Docker, where you only
specify a single Python file to run.

Host and port are read from the environment variables ``API_HOST`` and
``API_PORT`` (defaults ``0.0.0.0`` and ``8000``).  Everything else is
configured through the variables read by ``eventpros_api.app.core.config``.

Usage:
    python run.py
"""
import asyncio
import os

from uvicorn import Config, Server

from eventpros_api.app.core.config import settings
from eventpros_api.app.main import app


async def main() -> None:
    host = os.getenv("API_HOST", "0.0.0.0")
    port = int(os.getenv("API_PORT", "8000"))
    config = Config(app=app, host=host, port=port, reload=False, log_level=settings.log_level.lower())
    server = Server(config)
    await server.serve()


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except (KeyboardInterrupt, SystemExit):
        pass
