# AI-backed word explanations (the Lookup Gateway core).
# プロンプト契約は prompts.py を参照。ここではリクエストの組み立てと JSON 解析だけを行う。

import json
import logging
from typing import Any, Dict, List, Optional

from openai import OpenAI, OpenAIError

import constants
from config import get_config
from errors import BackendError, InvalidInputError
from prompts import LOOKUP_USER_TEMPLATE, PROMPTS_BY_VERSION
from schema import parse_generation_response

logger = logging.getLogger(__name__)

_OPENAI_CLIENT: Optional[Any] = None


def get_openai_client() -> Optional[Any]:
    """Get configured OpenAI client, or None when no API key is set."""
    global _OPENAI_CLIENT
    if _OPENAI_CLIENT is not None:
        return _OPENAI_CLIENT

    cfg = get_config()
    api_key = cfg["openai_api_key"]
    if not api_key:
        logger.error("OPENAI_API_KEY not configured in secrets or env")
        return None

    _OPENAI_CLIENT = OpenAI(
        api_key=api_key,
        base_url=cfg["openai_base_url"],
        max_retries=constants.OPENAI_MAX_RETRIES,
    )
    return _OPENAI_CLIENT


def clean_term(term: Any) -> str:
    """Return the trimmed term, raising InvalidInputError when nothing is left."""
    if not isinstance(term, str) or not term.strip():
        raise InvalidInputError(constants.ERROR_WORD_REQUIRED)
    return term.strip()


def build_messages(term: str, prompt_version: Optional[str] = None) -> List[Dict[str, str]]:
    """Build the system instruction + user turn for one lookup."""
    version = prompt_version or constants.DEFAULT_PROMPT_VERSION
    system_prompt = PROMPTS_BY_VERSION.get(version, PROMPTS_BY_VERSION[constants.DEFAULT_PROMPT_VERSION])
    return [
        {"role": "system", "content": system_prompt},
        {"role": "user", "content": LOOKUP_USER_TEMPLATE.format(term=term)},
    ]


def parse_json_payload(content: Optional[str]) -> Dict[str, Any]:
    """Parse the backend's text as one JSON object and check its shape."""
    if not content or not content.strip():
        raise BackendError("Empty AI response")
    try:
        payload = json.loads(content)
    except json.JSONDecodeError as e:
        raise BackendError("AI response is not valid JSON", details=str(e)) from e
    parse_generation_response(payload)
    return payload


def generate_content(
    term: Any,
    client: Optional[Any] = None,
    model_name: Optional[str] = None,
    prompt_version: Optional[str] = None,
) -> Dict[str, Any]:
    """Ask the backend to explain *term*; return its JSON object unmodified.

    Raises InvalidInputError for an empty term (before any network call) and
    BackendError for everything that goes wrong afterwards.
    """
    word = clean_term(term)

    cfg = get_config()
    version = prompt_version or cfg["prompt_version"]
    model = model_name or cfg["openai_model"]

    client = client or get_openai_client()
    if client is None:
        raise BackendError("AI client not available", details="OPENAI_API_KEY is not configured")

    try:
        response = client.chat.completions.create(
            model=model,
            messages=build_messages(word, version),
            response_format={"type": "json_object"},
        )
    except OpenAIError as e:
        logger.error("AI generation error for %r: %s", word, e)
        raise BackendError(constants.ERROR_GENERATION_FAILED, details=str(e)) from e

    content = response.choices[0].message.content if response.choices else None
    try:
        return parse_json_payload(content)
    except BackendError as e:
        logger.error("Unusable AI response for %r: %s", word, e.details)
        raise

