"""
Lookup Gateway – HTTP entry point.
Stateless: one POST {"word": ...} in, the backend's JSON explanation out.
Run with ``python gateway.py`` or ``uvicorn gateway:app``.
"""
import json
import logging
from typing import Any, Dict, Tuple

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse, Response
from starlette.concurrency import run_in_threadpool

import ai
import constants
from errors import BackendError, InvalidInputError

logger = logging.getLogger(__name__)

if not logging.getLogger().handlers:
    logging.basicConfig(
        level=logging.INFO,
        format="%(levelname)s:%(name)s:%(message)s",
    )

CORS_ORIGIN_HEADER = {"Access-Control-Allow-Origin": "*"}
CORS_PREFLIGHT_HEADERS = {
    **CORS_ORIGIN_HEADER,
    "Access-Control-Allow-Headers": "Content-Type",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
}
ALL_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]

app = FastAPI(title=f"{constants.APP_TITLE} Gateway")


def parse_request_body(raw: bytes) -> Any:
    """Return the "word" field of a JSON request body (None if absent)."""
    body = json.loads(raw or b"null")
    if not isinstance(body, dict):
        return None
    return body.get("word")


def generate(word: Any) -> Tuple[int, Dict[str, Any]]:
    """Run one lookup and map it onto (status_code, json_body). Never raises.

    The body is either the backend's response object, untouched, or an error
    object with a string "error" field.
    """
    try:
        return 200, ai.generate_content(word)
    except InvalidInputError:
        return 400, {"error": constants.ERROR_WORD_REQUIRED}
    except BackendError as e:
        return 500, {"error": constants.ERROR_GENERATION_FAILED, "details": e.details}
    except Exception as e:
        logger.exception("Unexpected failure while generating %r", word)
        return 500, {"error": constants.ERROR_GENERATION_FAILED, "details": str(e)}


async def generate_endpoint(request: Request) -> Response:
    if request.method == "OPTIONS":
        return Response(status_code=200, headers=CORS_PREFLIGHT_HEADERS)

    if request.method != "POST":
        return PlainTextResponse("Method Not Allowed", status_code=405, headers=CORS_ORIGIN_HEADER)

    try:
        word = parse_request_body(await request.body())
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        logger.error("Unreadable request body: %s", e)
        return JSONResponse(
            {"error": constants.ERROR_GENERATION_FAILED, "details": str(e)},
            status_code=500,
            headers=CORS_ORIGIN_HEADER,
        )

    status_code, body = await run_in_threadpool(generate, word)
    return JSONResponse(body, status_code=status_code, headers=CORS_ORIGIN_HEADER)


app.add_api_route(constants.GATEWAY_PATH, generate_endpoint, methods=ALL_METHODS)
app.add_api_route(constants.GATEWAY_LEGACY_PATH, generate_endpoint, methods=ALL_METHODS)


def main() -> None:
    uvicorn.run(app, host=constants.GATEWAY_HOST, port=constants.GATEWAY_PORT)


if __name__ == "__main__":
    main()
