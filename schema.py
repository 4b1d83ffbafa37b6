# Response shapes of the generation backend and the legacy-schema upgrade.
#
# GenerationResponse is a tagged union: {"type": "candidates", ...} or a detail
# record, with or without "type": "detail". Saved entries written before the
# meanings schema carry definitions / part_of_speech / examples at top level;
# normalize_detail() upgrades those before anything else reads them.

import copy
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, ValidationError, field_validator, model_validator

import constants
from errors import ResponseShapeError

_LEGACY_KEYS = ("definitions", "part_of_speech", "examples")


class _Record(BaseModel):
    model_config = ConfigDict(extra="ignore")

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, data: Any) -> Any:
        # LLM output uses null for "not applicable"; fall back to field defaults.
        if isinstance(data, dict):
            return {k: v for k, v in data.items() if v is not None}
        return data


class Example(_Record):
    scenario: str = ""
    zh: str = ""
    jp: str = ""
    note: Optional[str] = None


class Meaning(_Record):
    part_of_speech: str = ""
    short_definition: str = ""
    definition: str = ""
    examples: List[Example] = Field(default_factory=list)


class Synonym(_Record):
    word: str = ""
    pinyin: str = ""
    nuance: str = ""


class DetailRecord(_Record):
    word: str
    pinyin: str = ""
    meanings: List[Meaning] = Field(default_factory=list)
    synonyms: List[Synonym] = Field(default_factory=list)
    usage_tips: str = ""
    summary: List[str] = Field(default_factory=list)

    # The payload this record was validated from, extra keys included.
    _source: Optional[Dict[str, Any]] = PrivateAttr(default=None)

    @field_validator("word")
    @classmethod
    def _word_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("word must not be empty")
        return value

    def to_dict(self) -> Dict[str, Any]:
        """Plain JSON-ready dict in the meanings schema."""
        return self.model_dump(exclude_none=True)

    def source_data(self) -> Dict[str, Any]:
        """The payload as received (legacy shape included), else the meanings dump."""
        if self._source is not None:
            return copy.deepcopy(self._source)
        return self.to_dict()


class CandidateRecord(_Record):
    zh: str
    pinyin: str = ""
    jp_meaning: str = ""
    usage: str = ""
    recommendation: int = constants.MIN_RECOMMENDATION

    @field_validator("zh")
    @classmethod
    def _zh_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("zh must not be empty")
        return value

    @field_validator("recommendation")
    @classmethod
    def _clamp_recommendation(cls, value: int) -> int:
        return max(constants.MIN_RECOMMENDATION, min(constants.MAX_RECOMMENDATION, value))


class CandidateList(_Record):
    type: Literal["candidates"] = "candidates"
    candidates: List[CandidateRecord] = Field(min_length=1)

    def words(self) -> List[str]:
        return [c.zh for c in self.candidates]


GenerationResult = Union[CandidateList, DetailRecord]


def response_type(payload: Dict[str, Any]) -> str:
    """Discriminate on "type", falling back to detail when it is absent."""
    return payload.get("type") or constants.RESPONSE_TYPE_DETAIL


def is_legacy_detail(data: Dict[str, Any]) -> bool:
    return "meanings" not in data and any(key in data for key in _LEGACY_KEYS)


def _as_text(value: Any) -> str:
    # Legacy records sometimes hold a list of lines where a string belongs.
    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        return "\n".join(_as_text(v) for v in value if v is not None)
    return str(value)


def upgrade_legacy_detail(data: Dict[str, Any]) -> Dict[str, Any]:
    """Fold top-level definitions / part_of_speech / examples into one meaning."""
    definitions = data.get("definitions") or {}
    if not isinstance(definitions, dict):
        definitions = {"original": definitions}

    long_parts = [_as_text(definitions.get("derived")), _as_text(definitions.get("context"))]
    meaning = {
        "part_of_speech": _as_text(data.get("part_of_speech")),
        "short_definition": _as_text(definitions.get("original")),
        "definition": "\n".join(p for p in long_parts if p),
        "examples": data.get("examples") or [],
    }
    upgraded = {k: v for k, v in data.items() if k not in _LEGACY_KEYS}
    upgraded["meanings"] = [meaning]
    return upgraded


def normalize_detail(data: Any) -> DetailRecord:
    """Validate a detail payload (either schema) into a meanings-based DetailRecord."""
    if isinstance(data, DetailRecord):
        return data
    if not isinstance(data, dict):
        raise ResponseShapeError("Detail record must be a JSON object", details=type(data).__name__)
    source = data
    if is_legacy_detail(data):
        data = upgrade_legacy_detail(data)
    try:
        record = DetailRecord.model_validate(data)
    except ValidationError as e:
        raise ResponseShapeError("Invalid detail record", details=str(e)) from e
    record._source = copy.deepcopy(source)
    return record


def parse_generation_response(payload: Any) -> GenerationResult:
    """Resolve the tagged union into a CandidateList or a DetailRecord."""
    if not isinstance(payload, dict):
        raise ResponseShapeError("Response must be a JSON object", details=type(payload).__name__)

    kind = response_type(payload)
    if kind == constants.RESPONSE_TYPE_CANDIDATES:
        try:
            return CandidateList.model_validate(payload)
        except ValidationError as e:
            raise ResponseShapeError("Invalid candidates response", details=str(e)) from e
    if kind == constants.RESPONSE_TYPE_DETAIL:
        return normalize_detail(payload)
    raise ResponseShapeError(f"Unknown response type: {kind!r}")
