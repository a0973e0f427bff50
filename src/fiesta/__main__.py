"""Science Fiesta entrypoint.

Run with:
  python -m fiesta
"""

import logging
import os

import uvicorn

from fiesta.config import AppConfig


def main() -> None:
    config = AppConfig.from_env()
    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    host = os.getenv("FIESTA_HOST", "0.0.0.0")
    port = int(os.getenv("FIESTA_PORT", "8000"))
    reload = os.getenv("FIESTA_RELOAD", "false").lower() in {"1", "true", "yes", "y"}
    uvicorn.run("fiesta.app:create_app", factory=True, host=host, port=port, reload=reload)

if __name__ == "__main__":
    main()
