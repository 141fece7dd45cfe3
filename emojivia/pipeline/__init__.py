"""Operator provisioning flows.

Each flow reads the store through the IdentifierAllocator, calls the
generator, and writes through the IngestionCoordinator:

  provision_trivia         — category + topic → new "<namespace>_trivia_<n>" set
  provision_daily_mission  — date + two topics → guess_mode and no_cap_mode sets

Outcomes: an IngestResult / MissionResult on success; AlreadyProvisioned,
GenerationError, ContentValidationError or StoreWriteError when nothing was
persisted; PartialPipelineFailure when only guess_mode was persisted.
"""

from .orchestrator import (  # noqa: F401
    DEFAULT_COUNT,
    MAX_COUNT,
    clamp_count,
    provision_daily_mission,
    provision_trivia,
)
