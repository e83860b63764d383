"""
Answer states for one submission: idle -> loading -> success | error.

The page renders whatever ``display()`` returns; ``None`` means "show nothing".
"""
from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Any, Dict, Optional, Union

LOADING_TEXTS = (
    "Completing your homework",
    "Generating Latex",
    "Consulting the AI Singularity",
    "Solving the P vs NP problem",
    "Running superior wolfram alpha",
    "Doing super complex computations",
    "",
)

ERROR_TITLE = "There was an error!"


@dataclass(frozen=True)
class Idle:
    tag = "idle"

    def to_dict(self) -> Dict[str, Any]:
        return {"tag": self.tag}


@dataclass(frozen=True)
class Loading:
    message: str = ""
    tag = "loading"

    @classmethod
    def start(cls, rng: Optional[random.Random] = None) -> "Loading":
        return cls(message=(rng or random).choice(LOADING_TEXTS))

    def to_dict(self) -> Dict[str, Any]:
        return {"tag": self.tag, "message": self.message}


@dataclass(frozen=True)
class Success:
    response: str
    tag = "success"

    def to_dict(self) -> Dict[str, Any]:
        return {"tag": self.tag, "response": self.response}


@dataclass(frozen=True)
class Error:
    error: str
    tag = "error"

    def to_dict(self) -> Dict[str, Any]:
        return {"tag": self.tag, "error": self.error}


Answer = Union[Idle, Loading, Success, Error]

TERMINAL_TAGS = (Success.tag, Error.tag)

def is_terminal(answer: Answer) -> bool:
    return answer.tag in TERMINAL_TAGS

def display(answer: Answer) -> Optional[Dict[str, Any]]:
    if isinstance(answer, Idle):
        return None
    if isinstance(answer, Loading):
        return {"tag": "loading", "text": f"{answer.message}...", "progress": "indeterminate"}
    if isinstance(answer, Error):
        return {"tag": "error", "title": ERROR_TITLE, "text": f"Error {answer.error}"}
    return {"tag": "success", "latex": answer.response, "copy": answer.response}
