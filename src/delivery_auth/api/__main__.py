"""
delivery_auth.api.__main__

Entrypoint for the auth service (`python -m delivery_auth.api` or the
`delivery-auth-api` console script).
"""

from __future__ import annotations

import uvicorn

from delivery_auth.api.app import create_app
from delivery_auth.settings import get_settings


def main() -> None:
    settings = get_settings()
    if settings.env == "prod" and settings.shared_secret == "dev-secret-change-me":
        # Tokens signed with the default secret would be accepted by any dev install.
        raise SystemExit("DELIVERY_AUTH_SHARED_SECRET must be set in prod")

    app = create_app(settings=settings)
    uvicorn.run(
        app,
        host=settings.api_host,
        port=settings.api_port,
        log_level=settings.log_level.lower(),
        log_config=None,  # structlog
    )


if __name__ == "__main__":
    main()
