"""Match settings loaded from the environment."""

from __future__ import annotations

import os
from typing import Any

from pydantic import BaseModel, Field


class MatchSettings(BaseModel):
    """Knobs for a single match session."""

    rng_seed: int | None = None
    computer_name: str = Field(default="Computer", min_length=1)

    @classmethod
    def from_env(cls, **overrides: Any) -> "MatchSettings":
        """Construct settings from ``SALVO_RNG_SEED`` and ``SALVO_COMPUTER_NAME``."""

        data: dict[str, Any] = {}
        seed = os.getenv("SALVO_RNG_SEED")
        if seed is not None and seed.strip():
            try:
                data["rng_seed"] = int(seed)
            except ValueError as exc:
                raise ValueError(f"SALVO_RNG_SEED must be an integer, got {seed!r}.") from exc
        computer_name = os.getenv("SALVO_COMPUTER_NAME")
        if computer_name:
            data["computer_name"] = computer_name
        data.update(overrides)
        return cls(**data)
