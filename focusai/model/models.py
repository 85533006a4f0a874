__all__ = [
    "ActivityResponse",
    "ActivitySnapshot",
    "Category",
    "Decision",
    "DeviceIdentity",
    "OverlayState",
    "RegisterResponse",
    "SessionHandle",
    "SessionSpec",
    "SessionSummary",
    "StartResponse",
    "Voice",
]


import uuid
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import TypedDict

from pydantic import BaseModel, field_validator

from focusai.logger import logger

MIN_DURATION_MINUTES = 15
MAX_DURATION_MINUTES = 180
DURATION_STEP_MINUTES = 15


class Voice(str, Enum):
    """Companion voice chosen for the session."""

    CLUELY = "Cluely"
    CALM = "Calm"
    ENERGETIC = "Energetic"


class Category(str, Enum):
    """Distraction categories the user asks to be blocked."""

    SOCIAL = "social"
    NSFW = "nsfw"
    GAMES = "games"


class Decision(str, Enum):
    """Classification of the current activity against the session goal."""

    RELEVANT = "relevant"
    IRRELEVANT = "irrelevant"

    @classmethod
    def parse(cls, value: str) -> "Decision":
        """Map a backend tag to a decision; unknown tags count as relevant."""
        try:
            return cls(value)
        except ValueError:
            logger.warning("Unrecognized decision %r, treating as relevant", value)
            return cls.RELEVANT


class SessionSpec(BaseModel):
    """Parameters declared when a session starts."""

    model_config = {"frozen": True}

    goal: str
    duration_minutes: int = 45
    categories: frozenset[Category] = frozenset({Category.SOCIAL})
    voice: Voice = Voice.CLUELY

    @field_validator("goal")
    @classmethod
    def goal_must_not_be_empty(cls, v: str) -> str:
        """目標が空でないこと."""
        if not v or not v.strip():
            msg = "goal must not be empty"
            raise ValueError(msg)
        return v

    @field_validator("duration_minutes")
    @classmethod
    def duration_on_slider(cls, v: int) -> int:
        """15〜180分、15分刻み."""
        if not MIN_DURATION_MINUTES <= v <= MAX_DURATION_MINUTES:
            msg = (
                f"duration_minutes must be between {MIN_DURATION_MINUTES} "
                f"and {MAX_DURATION_MINUTES}"
            )
            raise ValueError(msg)
        if v % DURATION_STEP_MINUTES:
            msg = f"duration_minutes must be a multiple of {DURATION_STEP_MINUTES}"
            raise ValueError(msg)
        return v

    def to_payload(self, user_id: str | None) -> dict[str, object]:
        """Body for the session start endpoint."""
        return {
            "user_id": user_id,
            "goal": self.goal,
            "duration_minutes": self.duration_minutes,
            "categories": sorted(c.value for c in self.categories),
            "voice": self.voice.value,
        }


@dataclass(frozen=True)
class DeviceIdentity:
    """Stable identifier of this installation."""

    id: uuid.UUID


@dataclass(frozen=True)
class SessionHandle:
    """The live session; ``epoch`` tags everything issued on its behalf."""

    session_id: str
    spec: SessionSpec
    started_at: datetime
    epoch: int


@dataclass(frozen=True)
class OverlayState:
    """Blocking reminder shown while the activity is off-goal."""

    visible: bool = False
    target_title: str = ""


class ActivitySnapshot(TypedDict):
    """One poll tick's view of what the user is doing."""

    session_id: str
    user_id: str | None
    title: str
    url: str
    idle: bool


# --- Backend response bodies ---


class RegisterResponse(BaseModel):
    user_id: str


class StartResponse(BaseModel):
    session_id: str

    @field_validator("session_id")
    @classmethod
    def session_id_must_not_be_empty(cls, v: str) -> str:
        """空のsession_idは不正なレスポンス."""
        if not v:
            msg = "session_id must not be empty"
            raise ValueError(msg)
        return v


class ActivityResponse(BaseModel):
    decision: str


class SessionSummary(BaseModel):
    """Aggregate statistics; missing fields count as zero."""

    total_focus_seconds: int = 0
    distractions_blocked: int = 0
    streak_days: int = 0
