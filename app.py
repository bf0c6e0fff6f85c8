"""HTTP entry point for the wearable context service.

Run with ``python app.py`` (or ``uvicorn app:app``). Every POST answers with
HTTP 200 and a JSON object carrying ``success``; failures are reported in
``message`` rather than through status codes.
"""

import json
import os
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from config import load_config
from file_store import LocalFileStore
from service import SensorService


def build_service() -> SensorService:
    config = load_config()
    return SensorService(LocalFileStore(config.data_root), config)


def create_app(service: Optional[SensorService] = None) -> FastAPI:
    service = service or build_service()
    api = FastAPI(title="Wearable Context Service")

    @api.get("/")
    def describe():
        return service.describe()

    @api.post("/")
    async def handle(request: Request):
        body = await request.body()
        try:
            payload = json.loads(body.decode("utf-8") or "null")
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            print(f"Error: {exc}")
            return JSONResponse(content={"success": False, "message": f"Error: {exc}"})
        return JSONResponse(content=await run_in_threadpool(service.handle, payload))

    return api


app = create_app()


def main() -> None:
    uvicorn.run(
        app,
        host=os.getenv("WCS_HOST", "0.0.0.0"),
        port=int(os.getenv("WCS_PORT", "8080")),
    )


if __name__ == "__main__":
    main()
