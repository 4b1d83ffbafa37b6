# Pytest configuration: add parent directory to path so modules can be imported,
# and shared fakes so no test touches OpenAI, the network, or a real clock.
import os
import sys
from types import SimpleNamespace

import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import config as config_module  # noqa: E402

_CONFIG_ENV_KEYS = [
    "OPENAI_API_KEY", "OPENAI_BASE_URL", "OPENAI_MODEL", "OPENAI_MODEL_DISPLAY",
    "PROMPT_VERSION", "GATEWAY_URL", "VOCAB_STORE", "VOCAB_DB_PATH", "VOCAB_USER_ID",
    "GOOGLE_SHEETS_SPREADSHEET_ID", "GOOGLE_SHEETS_WORKSHEET", "GOOGLE_SHEETS_SERVICE_ACCOUNT",
]


@pytest.fixture(autouse=True)
def clean_config(monkeypatch):
    """Every test starts from defaults: no secrets file, no config env vars."""
    monkeypatch.setattr(config_module, "_get_secrets", lambda: {})
    for key in _CONFIG_ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


def make_detail(word="谢谢", meanings=1, examples=2):
    return {
        "word": word,
        "pinyin": "xièxie",
        "meanings": [
            {
                "part_of_speech": "動詞",
                "short_definition": "ありがとう",
                "definition": f"{word}の説明 {i}",
                "examples": [
                    {"scenario": f"場面{j}", "zh": f"{word}你。", "jp": "ありがとう。", "note": "口語"}
                    for j in range(examples)
                ],
            }
            for i in range(meanings)
        ],
        "synonyms": [{"word": "感谢", "pinyin": "gǎnxiè", "nuance": "やや改まった言い方"}],
        "usage_tips": "日常で最もよく使う。",
        "summary": ["感謝", "日常", "基本"],
    }


def make_candidates(words=("肩膀酸痛", "肩周炎", "落枕", "颈椎病", "肩膀僵硬")):
    return {
        "type": "candidates",
        "candidates": [
            {"zh": w, "pinyin": "", "jp_meaning": "肩こり", "usage": "口", "recommendation": 3 - min(i, 2)}
            for i, w in enumerate(words)
        ],
    }


@pytest.fixture
def detail_payload():
    return make_detail()


@pytest.fixture
def candidates_payload():
    return make_candidates()


class FakeGateway:
    """Answers from a dict of term -> payload (or Exception to raise); records calls."""

    def __init__(self, responses=None):
        self.responses = dict(responses or {})
        self.calls = []

    def generate(self, term):
        self.calls.append(term)
        result = self.responses.get(term)
        if result is None:
            return make_detail(term)
        if isinstance(result, Exception):
            raise result
        return result


class ManualScheduler:
    """Records (delay, fn) instead of starting timers; run() fires them in delay order."""

    def __init__(self):
        self.scheduled = []
        self.cancelled = 0

    def schedule(self, delay, fn):
        self.scheduled.append((delay, fn))

    def cancel_all(self):
        count = len(self.scheduled)
        self.cancelled += count
        self.scheduled = []
        return count

    def run(self):
        pending, self.scheduled = sorted(self.scheduled, key=lambda item: item[0]), []
        for _, fn in pending:
            fn()


class FakeCompletions:
    def __init__(self, content=None, error=None):
        self.content = content
        self.error = error
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        message = SimpleNamespace(content=self.content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def make_openai_client(content=None, error=None):
    completions = FakeCompletions(content=content, error=error)
    return SimpleNamespace(chat=SimpleNamespace(completions=completions))


@pytest.fixture
def fake_gateway():
    return FakeGateway()


@pytest.fixture
def manual_scheduler():
    return ManualScheduler()
