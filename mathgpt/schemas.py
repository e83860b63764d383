"""
Request and response models for the completion endpoint and page sessions.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Union

from pydantic import BaseModel, Field, StrictStr, ValidationError


class PromptRequest(BaseModel):
    """Body of POST /api/gpt3"""

    prompt: str = Field(..., description="Natural-language prompt sent to the completion service")


class ApiReturn(BaseModel):
    """Body returned by POST /api/gpt3"""

    promptReturn: StrictStr = Field(..., description="Completion text, usually LaTeX")

    model_config = {
        "json_schema_extra": {
            "example": {"promptReturn": "\\sqrt{2}"}
        }
    }


class ExpressionUpdate(BaseModel):
    latex: str


class IntentUpdate(BaseModel):
    intent: str


class SubmitRequest(BaseModel):
    """What the page holds at the moment Calculate! is pressed"""

    latex: Optional[str] = None
    intent: Optional[str] = None


# ============================================================
# Fallible parse of the completion endpoint's body
# ============================================================

@dataclass(frozen=True)
class ParseOk:
    value: ApiReturn


@dataclass(frozen=True)
class ParseFailure:
    message: str


ParseResult = Union[ParseOk, ParseFailure]

def parse_api_return(data: Any) -> ParseResult:
    try:
        return ParseOk(ApiReturn.model_validate(data))
    except ValidationError as e:
        return ParseFailure(str(e))
