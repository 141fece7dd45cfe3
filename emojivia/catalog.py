"""Level catalog rule engine.

Derives a LevelDescriptor for every level 1..N from fixed rules, with no
randomness and no clock, so re-seeding the same configuration rewrites
identical documents.

XP curves (one per run):
  block  — levels 1–100 grow by 50 XP each; after that the per-level delta
           itself grows by 50 every 100 levels and restarts the block at 100.
  flat   — level * 100.

Title schemes:
  lattice  — prefix/suffix word lattice indexed by level modulo list length,
             formatted by level band ("Mind Breaker", "Mind Breaker 120",
             "Mind Breaker of Emojis").
  authored — hand-written unique titles, one per level; only valid when the
             list covers the catalog exactly.

Emoji tiers are (upper_bound, token) pairs in increasing bound order. Levels
past the last bound take the fallback token.
"""

from __future__ import annotations

import logging
from bisect import bisect_left
from typing import Any, Literal

from pydantic import BaseModel, Field, model_validator

from emojivia.models import Document, LevelDescriptor
from emojivia.store import ContentStore

logger = logging.getLogger(__name__)

LEVELS_COLLECTION = "levels"

XpCurve = Literal["block", "flat"]
TitleScheme = Literal["lattice", "authored"]
TierPreset = Literal["hundreds", "bands"]

TITLE_PREFIXES: tuple[str, ...] = (
    "Emoji", "Trivia", "Mind", "Brain", "Puzzle",
    "Symbol", "Cosmic", "Alpha", "Omega", "Legend",
)

TITLE_SUFFIXES: tuple[str, ...] = (
    "Novice", "Hunter", "Breaker", "Master", "Lord",
    "Overlord", "Champion", "God", "Supreme", "Ascendant",
)

FALLBACK_EMOJI = "👑"

# One tier per 100 levels
HUNDRED_LEVEL_TIERS: tuple[tuple[int, str], ...] = (
    (100, "🙂"),
    (200, "😎"),
    (300, "🧠"),
    (400, "⚔️"),
    (500, "👑"),
    (600, "🔥"),
    (700, "💎"),
    (800, "🚀"),
    (900, "🌌"),
    (1000, "⚡"),
    (1100, "👁️"),
    (1200, "🌀"),
    (1300, "🌠"),
    (1400, "🧿"),
    (1500, "👑✨"),
)

# Irregular bands for short catalogs: 1–20, 21–40, … 251–300, then 300+
BAND_TIERS: tuple[tuple[int, str], ...] = (
    (20, "🌱"),
    (40, "🌿"),
    (60, "🍀"),
    (80, "🌳"),
    (100, "⭐"),
    (150, "🌟"),
    (200, "💫"),
    (250, "🔥"),
    (300, "💎"),
)

TIER_PRESETS: dict[str, tuple[tuple[int, str], ...]] = {
    "hundreds": HUNDRED_LEVEL_TIERS,
    "bands": BAND_TIERS,
}


class CatalogConfig(BaseModel):
    """Everything a catalog run depends on. Equal configs produce equal catalogs."""

    size: int = Field(default=1500, ge=1)
    curve: XpCurve = "block"
    title_scheme: TitleScheme = "lattice"
    authored_titles: list[str] = Field(default_factory=list)
    emoji_tiers: list[tuple[int, str]] = Field(
        default_factory=lambda: list(HUNDRED_LEVEL_TIERS)
    )
    fallback_emoji: str = FALLBACK_EMOJI
    bare_title_below: int = 50
    numbered_title_below: int = 300

    @model_validator(mode="after")
    def _check_consistency(self) -> CatalogConfig:
        bounds = [bound for bound, _ in self.emoji_tiers]
        if any(b < 1 for b in bounds):
            raise ValueError("emoji tier bounds must be positive")
        if any(a >= b for a, b in zip(bounds, bounds[1:])):
            raise ValueError("emoji tier bounds must be strictly increasing")
        if self.bare_title_below > self.numbered_title_below:
            raise ValueError("bare_title_below must not exceed numbered_title_below")
        if self.title_scheme == "authored":
            if len(self.authored_titles) != self.size:
                raise ValueError(
                    f"authored titles cover {len(self.authored_titles)} levels, "
                    f"catalog has {self.size}"
                )
            if len(set(self.authored_titles)) != len(self.authored_titles):
                raise ValueError("authored titles must be unique")
        return self

    @classmethod
    def from_settings(cls, settings: dict[str, Any]) -> CatalogConfig:
        """Build from the "catalog" section of the app config."""
        fields = dict(settings)
        preset = fields.pop("tier_preset", None)
        if preset is not None and "emoji_tiers" not in fields:
            if preset not in TIER_PRESETS:
                raise ValueError(f"Unknown tier preset {preset!r}")
            fields["emoji_tiers"] = list(TIER_PRESETS[preset])
        return cls.model_validate(fields)


# ---------------------------------------------------------------------------
# Rules
# ---------------------------------------------------------------------------

def xp_threshold(level: int, curve: XpCurve = "block") -> int:
    if curve == "flat":
        return level * 100
    if level <= 100:
        return 100 + (level - 1) * 50
    block = (level - 1) // 100
    increment = 50 * (block + 1)
    return 100 + increment * ((level - 1) % 100)


def level_title(level: int, config: CatalogConfig) -> str:
    if config.title_scheme == "authored":
        return config.authored_titles[level - 1]

    prefix = TITLE_PREFIXES[level % len(TITLE_PREFIXES)]
    suffix = TITLE_SUFFIXES[level % len(TITLE_SUFFIXES)]
    if level < config.bare_title_below:
        return f"{prefix} {suffix}"
    if level < config.numbered_title_below:
        return f"{prefix} {suffix} {level}"
    return f"{prefix} {suffix} of Emojis"


def tier_emoji(
    level: int,
    tiers: list[tuple[int, str]],
    fallback: str = FALLBACK_EMOJI,
) -> str:
    """Token of the first tier whose upper bound is >= level."""
    bounds = [bound for bound, _ in tiers]
    index = bisect_left(bounds, level)
    if index == len(tiers):
        return fallback
    return tiers[index][1]


def describe_level(level: int, config: CatalogConfig) -> LevelDescriptor:
    return LevelDescriptor(
        level=level,
        title=level_title(level, config),
        emoji=tier_emoji(level, config.emoji_tiers, config.fallback_emoji),
        xp_threshold=xp_threshold(level, config.curve),
    )


def build_catalog(config: CatalogConfig) -> list[LevelDescriptor]:
    return [describe_level(level, config) for level in range(1, config.size + 1)]


def seed_levels(store: ContentStore, config: CatalogConfig) -> int:
    """Write the whole catalog as one batch, keyed by level number. Returns the level count."""
    catalog = build_catalog(config)
    documents = [Document(id=str(d.level), data=d.to_fields()) for d in catalog]
    store.batch_write(LEVELS_COLLECTION, documents)
    logger.info(
        "Seeded %d levels (curve=%s, titles=%s)",
        len(documents), config.curve, config.title_scheme,
    )
    return len(documents)
