import logging

from fastapi import FastAPI, Request, Response
from fastapi.responses import PlainTextResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

logger = logging.getLogger(__name__)

app = FastAPI(title="canarywatch", docs_url=None, redoc_url=None)


@app.get("/ping", response_class=PlainTextResponse)
async def ping(request: Request):
    host = request.headers.get("host") or (request.url.hostname or "")
    return f"Pong from {host}!"


@app.get("/healthz", response_class=PlainTextResponse)
async def healthz():
    return "Healthy!"


@app.get("/metrics")
def metrics():
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)
