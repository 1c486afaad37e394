"""Run the service with uvicorn: ``python -m taskline``."""

from __future__ import annotations

import uvicorn

from taskline.config import load_config


def main() -> None:
    config = load_config()
    uvicorn.run("taskline.main:app", host=config.host, port=config.port)


if __name__ == "__main__":
    main()
