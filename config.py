# Single config layer: Streamlit secrets first, then env, then defaults.

import os

import constants


def _get_secrets():
    try:
        import streamlit as st
        return getattr(st, "secrets", None) or {}
    except Exception:
        return {}


def _read(secrets, key: str, default: str = "") -> str:
    try:
        value = secrets.get(key)
    except Exception:
        value = None
    if value not in (None, ""):
        return str(value).strip()
    return os.environ.get(key, default).strip()


def default_model_for(prompt_version: str) -> str:
    return constants.DEFAULT_MODEL_BY_PROMPT_VERSION.get(
        prompt_version,
        constants.DEFAULT_MODEL_BY_PROMPT_VERSION[constants.DEFAULT_PROMPT_VERSION],
    )


def _infer_model_display(model_name: str) -> str:
    model = (model_name or "").strip()
    lower = model.lower()
    exact_map = {
        "gpt-4o": "GPT-4o",
        "gpt-4o-mini": "GPT-4o mini",
    }
    if lower in exact_map:
        return exact_map[lower]
    if lower.startswith("gpt-") or lower.startswith("o1") or lower.startswith("o3"):
        return "OpenAI"
    return model


def get_config():
    """Return app config: st.secrets > env vars > defaults."""
    s = _get_secrets()

    prompt_version = _read(s, "PROMPT_VERSION", constants.DEFAULT_PROMPT_VERSION).lower()
    if prompt_version not in constants.PROMPT_VERSIONS:
        prompt_version = constants.DEFAULT_PROMPT_VERSION

    openai_model = _read(s, "OPENAI_MODEL") or default_model_for(prompt_version)

    vocab_store = _read(s, "VOCAB_STORE", constants.DEFAULT_VOCAB_STORE).lower()

    return {
        "openai_api_key": _read(s, "OPENAI_API_KEY"),
        "openai_base_url": _read(s, "OPENAI_BASE_URL", constants.DEFAULT_OPENAI_BASE_URL),
        "openai_model": openai_model,
        "openai_model_display": _read(s, "OPENAI_MODEL_DISPLAY") or _infer_model_display(openai_model),
        "prompt_version": prompt_version,
        "gateway_url": _read(s, "GATEWAY_URL"),
        "vocab_store": vocab_store,
        "vocab_db_path": _read(s, "VOCAB_DB_PATH", constants.DEFAULT_VOCAB_DB_PATH),
        "vocab_user_id": _read(s, "VOCAB_USER_ID") or None,
        "sheets_spreadsheet_id": _read(s, "GOOGLE_SHEETS_SPREADSHEET_ID"),
        "sheets_worksheet": _read(s, "GOOGLE_SHEETS_WORKSHEET", constants.DEFAULT_SHEETS_WORKSHEET),
        "sheets_service_account": _read(s, "GOOGLE_SHEETS_SERVICE_ACCOUNT"),
    }
