"""Run one service.

  SERVICE=issuance python -m credsvc        # port 3001 by default
  SERVICE=verification python -m credsvc    # port 3002 by default

Same code, different SERVICE value, one process per replica.
"""

from __future__ import annotations

import uvicorn

from credsvc.core.config import SETTINGS


def main() -> None:
    uvicorn.run(
        "credsvc.main:app",
        host="0.0.0.0",
        port=SETTINGS.port,
        log_config=None,  # keep the logging set up by credsvc.main
        proxy_headers=True,
    )


if __name__ == "__main__":
    main()
