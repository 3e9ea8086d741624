"""Run the API server: ``python -m logwarden``."""

import uvicorn

from logwarden.config import settings


def main() -> None:
    uvicorn.run(
        "logwarden.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
        reload=settings.debug,
    )


if __name__ == "__main__":
    main()
