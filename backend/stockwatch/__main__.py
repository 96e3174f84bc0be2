"""Module entrypoint: ``python -m stockwatch`` serves the API with uvicorn."""

import uvicorn

from stockwatch.market.config import FeedSettings


def main() -> int:
    settings = FeedSettings.from_env()
    uvicorn.run(
        "stockwatch.main:build_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        log_config=None,
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
