"""
Page sessions: the view-model behind one open page.

A session is created when the page mounts and closed when it unmounts. It
owns the expression, the selected intent and the current answer. Each
submission is numbered; only the latest submission may resolve the answer.
"""
from __future__ import annotations

import asyncio
import logging
import random
import time
import uuid
from typing import Any, Dict, List, Optional, Tuple

from mathgpt.answer import Answer, Idle, Loading, display
from mathgpt.client import ApiClient
from mathgpt.prompts import DEFAULT_INTENT, DEFAULT_LATEX, DEMOS, Intent, promptify

logger = logging.getLogger(__name__)


def now_ms() -> int:
    return int(time.time() * 1000)


class PageSession:
    def __init__(self, session_id: str, latex: str = DEFAULT_LATEX, intent: Intent = DEFAULT_INTENT,
                 rng: Optional[random.Random] = None):
        self.session_id = session_id
        self.created_at_ms = now_ms()
        self.last_seen_ms = self.created_at_ms
        self.latex = latex
        self.intent = intent
        self.answer: Answer = Idle()
        self.seq = 0
        self.rng = rng
        self.events: "asyncio.Queue[Dict[str, Any]]" = asyncio.Queue()

    @property
    def prompt(self) -> str:
        return promptify(self.intent, self.latex)

    # --- editor / dropdown / demo buttons

    def edit(self, latex: str) -> None:
        self.latex = latex

    def select_intent(self, intent: Intent) -> None:
        self.intent = intent

    def load_demo(self, index: int) -> None:
        if not 0 <= index < len(DEMOS):
            raise IndexError(f"no demo {index}")
        self.latex, self.intent = DEMOS[index]

    # --- submission

    def begin_submission(self) -> Tuple[int, str]:
        """Enter ``loading`` and return (sequence number, prompt) for the request."""
        self.seq += 1
        self._drain()
        self._set(Loading.start(self.rng))
        logger.info("Session %s: submission %d", self.session_id, self.seq)
        return self.seq, self.prompt

    def resolve(self, seq: int, answer: Answer) -> bool:
        if seq != self.seq:
            logger.warning("Session %s: dropping stale response %d (latest is %d)",
                           self.session_id, seq, self.seq)
            return False
        self._set(answer)
        logger.info("Session %s: submission %d -> %s", self.session_id, seq, answer.tag)
        return True

    async def submit(self, client: ApiClient) -> Answer:
        seq, prompt = self.begin_submission()
        await self.finish(client, seq, prompt)
        return self.answer

    async def finish(self, client: ApiClient, seq: int, prompt: str) -> None:
        self.resolve(seq, await client.ask(prompt))

    def snapshot(self) -> Dict[str, Any]:
        return {
            "session_id": self.session_id,
            "latex": self.latex,
            "intent": self.intent.value,
            "prompt": self.prompt,
            "answer": self.answer.to_dict(),
            "display": display(self.answer),
            "seq": self.seq,
        }

    def _set(self, answer: Answer) -> None:
        self.answer = answer
        self.events.put_nowait({"seq": self.seq, "answer": answer.to_dict(),
                                "display": display(answer), "ts": now_ms()})

    def _drain(self) -> None:
        while not self.events.empty():
            self.events.get_nowait()


class SessionRegistry:
    def __init__(self, max_age_sec: int = 60 * 15, rng: Optional[random.Random] = None):
        self.max_age_sec = max_age_sec
        self.rng = rng
        self._sessions: Dict[str, PageSession] = {}
        self._lock = asyncio.Lock()

    async def create(self) -> PageSession:
        await self.cleanup()
        session = PageSession(uuid.uuid4().hex, rng=self.rng)
        async with self._lock:
            self._sessions[session.session_id] = session
        logger.info("Session %s opened", session.session_id)
        return session

    async def get(self, session_id: str) -> Optional[PageSession]:
        async with self._lock:
            session = self._sessions.get(session_id)
            if session:
                session.last_seen_ms = now_ms()
            return session

    async def close(self, session_id: str) -> bool:
        async with self._lock:
            session = self._sessions.pop(session_id, None)
        if session:
            logger.info("Session %s closed", session_id)
        return session is not None

    async def cleanup(self, max_age_sec: Optional[int] = None) -> List[str]:
        age = self.max_age_sec if max_age_sec is None else max_age_sec
        cutoff = now_ms() - age * 1000
        async with self._lock:
            old = [sid for sid, s in self._sessions.items() if s.last_seen_ms < cutoff]
            for sid in old:
                del self._sessions[sid]
        return old

    def __len__(self) -> int:
        return len(self._sessions)
