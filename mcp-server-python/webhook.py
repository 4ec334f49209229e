#!/usr/bin/env python3
"""
HTTP webhook for email-triggered status updates.

The mail automation posts ``{"clockNumber": ..., "newStatus": ...}`` as JSON.
Responses are plain text: 200 on success, 400 for a bad body or status,
404 when no job matches, 405 for non-POST methods and 500 when the record
store fails.
"""

import json
import logging

import uvicorn
from fastapi import FastAPI, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import PlainTextResponse

from config import config
from models.errors import ErrorCode, ToolError
from tools.update_status_from_email import update_status_from_email

logger = logging.getLogger(__name__)

app = FastAPI(title="AccessFlow status webhook")


def _error_response(error: ToolError) -> PlainTextResponse:
    status = error.http_status
    if error.code == ErrorCode.VALIDATION_ERROR:
        body = f"Bad Request: {error.message}"
    elif error.code == ErrorCode.NOT_FOUND:
        body = error.message
    else:
        body = "Internal Server Error"
    return PlainTextResponse(body, status_code=status)


@app.post("/update-status")
@app.post("/updateStatusFromEmail")
async def update_status(request: Request) -> PlainTextResponse:
    raw = await request.body()
    logger.info(f"Status webhook received {len(raw)} bytes")

    try:
        body = json.loads(raw) if raw else None
    except ValueError:
        logger.warning("Status webhook body is not valid JSON")
        return PlainTextResponse("Bad Request: Body must be valid JSON", status_code=400)

    try:
        # sqlite work is blocking; keep it off the event loop
        _, message = await run_in_threadpool(update_status_from_email, body)
    except ToolError as e:
        logger.warning(f"Status webhook rejected ({e.code.value}): {e.message}")
        return _error_response(e)
    except Exception as e:
        logger.error(f"Status webhook failed: {e}", exc_info=True)
        return PlainTextResponse("Internal Server Error", status_code=500)

    return PlainTextResponse(message, status_code=200)


def main():
    config.setup_logging()
    for warning in config.validate():
        logger.warning(warning)
    logger.info(f"Starting status webhook on {config.webhook_host}:{config.webhook_port}")
    uvicorn.run(app, host=config.webhook_host, port=config.webhook_port, log_config=None)


if __name__ == "__main__":
    main()
