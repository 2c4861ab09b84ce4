from __future__ import annotations

import json
from pathlib import Path

from fastapi import FastAPI

from maguru.api.main import app as api_app


def export_openapi(app: FastAPI, destination: Path) -> None:
    """Persist the OpenAPI schema to the given destination."""
    destination.parent.mkdir(parents=True, exist_ok=True)
    destination.write_text(json.dumps(app.openapi(), indent=2))


def main() -> None:
    export_openapi(api_app, Path("docs/api/openapi.json"))


if __name__ == "__main__":
    main()
