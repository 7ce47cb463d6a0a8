"""ASGI entrypoint for the TaskDesk account API (``uvicorn taskdesk.main:app``)."""

import os

from .core.app_factory import create_application

app = create_application()

__all__ = ("app",)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "taskdesk.main:app",
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "5000")),
    )
