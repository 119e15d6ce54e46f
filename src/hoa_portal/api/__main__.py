"""
hoa_portal.api.__main__

`python -m hoa_portal.api`: serve the backend with uvicorn using `HOA_*` settings.
"""

from __future__ import annotations

import uvicorn

from hoa_portal.api.app import create_app
from hoa_portal.settings import get_settings


def main() -> None:
    settings = get_settings()
    uvicorn.run(
        create_app(settings=settings),
        host=settings.api_host,
        port=settings.api_port,
        # Logging is configured by create_app; the middleware writes access lines.
        log_config=None,
        access_log=False,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
