"""Run the MB Events API with Uvicorn.

Host and port are read from the ``HOST`` and ``PORT`` environment
variables (defaults ``0.0.0.0`` and ``8000``); everything else comes
from ``Settings.from_env``.

Usage:
    python -m mb_events_api
"""
import asyncio
import os

from uvicorn import Config, Server

from mb_events_api.app.main import app


async def main() -> None:
    host = os.getenv("HOST", "0.0.0.0")
    port = int(os.getenv("PORT", "8000"))
    settings = app.state.settings
    config = Config(app=app, host=host, port=port, reload=False, log_level=settings.log_level.lower())
    await Server(config).serve()


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except (KeyboardInterrupt, SystemExit):
        pass
