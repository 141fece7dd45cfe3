"""Core domain models.

Every provisioning stage and the store adapter operate on these types.
Pydantic is used for validation and serialisation at every data boundary.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field, model_validator

# Options are flattened into a single stored field joined by this delimiter.
OPTION_DELIMITER = "|"
OPTION_COUNT = 4

MissionMode = Literal["guess_mode", "no_cap_mode"]
MISSION_MODES: tuple[MissionMode, ...] = ("guess_mode", "no_cap_mode")

ContentMode = Literal["trivia", "guess_mode", "no_cap_mode"]


class ContentValidationError(ValueError):
    """Raised when candidate content or an identifier is structurally invalid."""


class ContentItem(BaseModel):
    """One multiple-choice question inside a content set."""

    id: int = Field(gt=0)
    question: str = Field(min_length=1)
    options: list[str] = Field(min_length=OPTION_COUNT, max_length=OPTION_COUNT)
    answer: str

    @model_validator(mode="after")
    def _answer_among_options(self) -> ContentItem:
        if len(set(self.options)) != len(self.options):
            raise ValueError("options must be distinct")
        if self.answer not in self.options:
            raise ValueError(f"answer {self.answer!r} is not one of the options")
        return self


class Document(BaseModel):
    """A single document as returned by a store listing."""

    id: str
    data: dict[str, Any] = Field(default_factory=dict)


class LevelDescriptor(BaseModel):
    """Progression metadata for one level of the catalog."""

    level: int = Field(ge=1)
    title: str
    emoji: str
    xp_threshold: int = Field(gt=0)
    image_url: str = ""  # reserved for level artwork

    def to_fields(self) -> dict[str, Any]:
        """Stored document shape for ``levels/<level>``."""
        return {
            "level": self.level,
            "title": self.title,
            "emoji": self.emoji,
            "xp_to_next_level": self.xp_threshold,
            "image_url": self.image_url,
        }


class IngestResult(BaseModel):
    """Outcome of one committed content-set batch."""

    set_id: str
    path: str
    count: int


class ModeOutcome(BaseModel):
    mode: MissionMode
    persisted: bool
    count: int = 0
    error: str | None = None


class MissionResult(BaseModel):
    """Aggregated outcome of a daily-mission provisioning request."""

    date_key: str
    status: Literal["success", "partial"]
    outcomes: list[ModeOutcome]

    @property
    def persisted_modes(self) -> list[str]:
        return [o.mode for o in self.outcomes if o.persisted]

    @property
    def failed_mode(self) -> str | None:
        for outcome in self.outcomes:
            if not outcome.persisted:
                return outcome.mode
        return None


def join_options(options: list[str]) -> str:
    return OPTION_DELIMITER.join(options)


def split_options(stored: str) -> list[str]:
    """Inverse of join_options.

    Only round-trips when no option contains OPTION_DELIMITER. An option such
    as "A|B" is stored verbatim and comes back as two options; nothing on the
    write path escapes or rejects it.
    """
    return stored.split(OPTION_DELIMITER)
