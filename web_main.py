"""
Entry point for the chessduel room server.

    uv run python web_main.py       ← serves the API and WebSocket on config.web.host:port
"""

import uvicorn

from chessduel.config import load_config_or_default

if __name__ == "__main__":
    config = load_config_or_default()
    uvicorn.run(
        "chessduel.web.app:app",
        host=config.web.host,
        port=config.web.port,
        reload=True,
    )
