"""Launch the Docscan API under uvicorn."""

from __future__ import annotations

import asyncio
import os
from typing import Optional

import uvicorn

APP_FACTORY = "docscan.server.app:create_app"


def serve(
    host: str = "127.0.0.1",
    port: int = 8000,
    *,
    reload: bool = False,
    duration: Optional[float] = None,
) -> None:
    """Serve the app factory; with ``duration`` the server stops itself after that many seconds."""

    if reload and duration is not None:
        raise SystemExit("Auto-reload cannot be combined with a fixed serving duration.")
    if duration is not None and duration <= 0:
        raise SystemExit("Serving duration must be greater than 0.")

    if reload:
        uvicorn.run(APP_FACTORY, host=host, port=port, reload=True, factory=True)
        return

    server = uvicorn.Server(uvicorn.Config(APP_FACTORY, host=host, port=port, factory=True))
    if duration is None:
        server.run()
        return

    async def _serve_for() -> None:
        async def _stop_later() -> None:
            await asyncio.sleep(duration)
            server.should_exit = True

        stopper = asyncio.create_task(_stop_later())
        try:
            await server.serve()
        finally:
            stopper.cancel()

    asyncio.run(_serve_for())


def main() -> None:
    """Entry point behind the ``docscan-server`` script, configured by environment."""

    raw_duration = os.environ.get("DOCSCAN_SERVER_DURATION")
    try:
        duration = float(raw_duration) if raw_duration else None
        port = int(os.environ.get("DOCSCAN_SERVER_PORT", "8000"))
    except ValueError as exc:
        raise SystemExit(f"Invalid server setting: {exc}") from exc

    serve(
        os.environ.get("DOCSCAN_SERVER_HOST", "127.0.0.1"),
        port,
        reload=os.environ.get("DOCSCAN_SERVER_RELOAD") == "1",
        duration=duration,
    )


if __name__ == "__main__":
    main()
