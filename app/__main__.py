"""
Run the server: ``python -m app``.

uvicorn runs the application lifespan (database connect) before binding
the port, and exits if the port is already taken.
"""

import uvicorn

from app.core.config import settings


def main() -> None:
    uvicorn.run("app.main:app", host=settings.HOST, port=settings.PORT, lifespan="on")


if __name__ == "__main__":
    main()
