"""
Run the Warden API server with uvicorn.

Usage:
    python -m warden
"""

import uvicorn

from warden.core.config import settings


def main() -> None:
    uvicorn.run(
        "warden.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.reload,
        log_config=None,
    )


if __name__ == "__main__":
    main()
