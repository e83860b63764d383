from __future__ import annotations

from enum import Enum
from typing import List, Tuple

# ============================================================
# Intents -> prompt text
# ============================================================

class Intent(str, Enum):
    SOLVE = "Solve"
    FIND_X = "Find x"
    PROVE = "Prove"

    @classmethod
    def parse(cls, label: str) -> "Intent":
        for intent in cls:
            if intent.value == label:
                return intent
        raise ValueError(f"unknown intent: {label!r}")

    @classmethod
    def labels(cls) -> List[str]:
        return [intent.value for intent in cls]


LEAD_INS = {
    Intent.SOLVE: "Solve the following",
    Intent.FIND_X: "Find x in the following",
    Intent.PROVE: "Prove the following",
}

def promptify(intent: Intent, latex: str) -> str:
    return f"{LEAD_INS[intent]}: $${latex}$$"

# ============================================================
# Page defaults and demo buttons
# ============================================================

DEFAULT_LATEX = "\\frac{1}{\\sqrt{2}}\\cdot 2"
DEFAULT_INTENT = Intent.SOLVE

DEMOS: List[Tuple[str, Intent]] = [
    (DEFAULT_LATEX, Intent.SOLVE),
    ("\\frac{d}{dx} 1/x+1/x^2", Intent.FIND_X),
    ("\\int_{-\\infty}^{\\infty} \\frac{e^{ix}}{{e^x+e^{-x}}}dx", Intent.SOLVE),
]
