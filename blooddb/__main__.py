"""BloodDB entrypoint.

Run with:
  python -m blooddb
"""

import uvicorn

from blooddb.config import settings


def main() -> None:
    uvicorn.run("blooddb.main:app", host=settings.app_host, port=settings.app_port, reload=settings.app_env == "dev")


if __name__ == "__main__":
    main()
