"""
Diagram Store - Session state for step-through diagrams.

Key Structure:
    diagram:{session_id}:problem  -> Hash (dividend, divisor, granularity)
    diagram:{session_id}:cursor   -> Hash (index, total)
    diagram:{session_id}:practice -> String (JSON of the practice session)

The trace itself is never stored: it is rebuilt from the problem, so a
stored cursor always points into the same deterministic stage list.
"""

import json
import logging
from typing import Dict, Optional

import redis

from config import Settings, get_settings
from diagrams.division import DividendDivisor
from diagrams.practice import PracticeSession
from diagrams.stages import CYCLE

logger = logging.getLogger(__name__)


class SessionNotFound(KeyError):
    """No diagram session under that id."""


class DiagramStore:
    def __init__(self, settings: Optional[Settings] = None, client: Optional[redis.Redis] = None):
        """Connect to Redis using settings (environment by default)."""
        settings = settings or get_settings()
        self.client = client or redis.Redis(
            host=settings.redis_host,
            port=settings.redis_port,
            password=settings.redis_password,
            decode_responses=True  # Return strings instead of bytes
        )

    # ==================== Key Builders ====================

    def _problem_key(self, session_id: str) -> str:
        """Redis key for the problem constants."""
        return f"diagram:{session_id}:problem"

    def _cursor_key(self, session_id: str) -> str:
        """Redis key for the cursor position."""
        return f"diagram:{session_id}:cursor"

    def _practice_key(self, session_id: str) -> str:
        """Redis key for practice grading state."""
        return f"diagram:{session_id}:practice"

    # ==================== Session Management ====================

    def create_session(self, session_id: str, problem: DividendDivisor,
                       total_stages: int, granularity: str = CYCLE) -> Dict:
        """
        Initialize a session with the cursor on the first stage.

        Args:
            session_id: Unique session identifier
            problem: Dividend/divisor pair
            total_stages: Number of stages of the problem's trace
            granularity: Stage granularity used to build the trace stages

        Returns:
            Dict with initial session state
        """
        problem_state = {
            "dividend": str(problem.dividend),
            "divisor": str(problem.divisor),
            "granularity": granularity,
        }
        cursor_state = {"index": "0", "total": str(total_stages)}

        self.client.hset(self._problem_key(session_id), mapping=problem_state)
        self.client.hset(self._cursor_key(session_id), mapping=cursor_state)
        logger.info("Created diagram session %s for %d ÷ %d",
                    session_id, problem.dividend, problem.divisor)

        return {
            "session_id": session_id,
            "problem": problem.to_dict(),
            "granularity": granularity,
            "cursor": {"index": 0, "total": total_stages},
        }

    def get_session(self, session_id: str) -> Optional[Dict]:
        """
        Retrieve session state, or None if the session does not exist.
        """
        problem_key = self._problem_key(session_id)
        if not self.client.exists(problem_key):
            return None

        problem_raw = self.client.hgetall(problem_key)
        cursor_raw = self.client.hgetall(self._cursor_key(session_id))
        problem = DividendDivisor(int(problem_raw["dividend"]), int(problem_raw["divisor"]))

        return {
            "session_id": session_id,
            "problem": problem.to_dict(),
            "granularity": problem_raw.get("granularity", CYCLE),
            "cursor": {
                "index": int(cursor_raw.get("index", 0)),
                "total": int(cursor_raw.get("total", 1)),
            },
        }

    def get_problem(self, session_id: str) -> DividendDivisor:
        """Problem constants for a session. Raises SessionNotFound."""
        problem_raw = self.client.hgetall(self._problem_key(session_id))
        if not problem_raw:
            raise SessionNotFound(session_id)
        return DividendDivisor(int(problem_raw["dividend"]), int(problem_raw["divisor"]))

    def delete_session(self, session_id: str):
        """
        Delete all data for a session.
        """
        self.client.delete(
            self._problem_key(session_id),
            self._cursor_key(session_id),
            self._practice_key(session_id)
        )

    # ==================== Cursor ====================

    def get_cursor_index(self, session_id: str) -> int:
        """Stored cursor index (0 when unset)."""
        return int(self.client.hget(self._cursor_key(session_id), "index") or 0)

    def set_cursor_index(self, session_id: str, index: int):
        """Persist a cursor position after advance/retreat/go_to."""
        self.client.hset(self._cursor_key(session_id), "index", index)

    # ==================== Practice ====================

    def save_practice(self, session_id: str, practice: PracticeSession):
        """Store the practice grading state as JSON."""
        self.client.set(self._practice_key(session_id), json.dumps(practice.to_dict()))

    def load_practice(self, session_id: str) -> Optional[PracticeSession]:
        """Practice state for a session, or None if practice has not started."""
        raw = self.client.get(self._practice_key(session_id))
        if raw is None:
            return None
        return PracticeSession.from_dict(json.loads(raw))
