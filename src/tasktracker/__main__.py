"""
Run the API with uvicorn.

Usage:
    python -m tasktracker
"""
from __future__ import annotations

import uvicorn

from .main import create_app
from .settings import get_settings


def main() -> None:
    settings = get_settings()
    app = create_app(settings)
    uvicorn.run(app, host="0.0.0.0", port=settings.port, log_config=None)


if __name__ == "__main__":
    main()
