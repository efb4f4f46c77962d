"""
Identification configuration: convergence, scoring weights, and loop pacing.

IdentificationConfig defaults are defined here. The server may pass a dict
(e.g. from environment overrides or a JSON file); from_dict() merges it with
these defaults.
"""

from typing import Dict, Optional

from pydantic import BaseModel, Field, model_validator


class IdentificationConfig(BaseModel):
    """Configuration for the identification loop and candidate scorer."""

    # -------------------------------------------------------------------------
    # Convergence
    # -------------------------------------------------------------------------

    # Top candidate score needed to fetch film details and complete the session.
    score_threshold: float = Field(default=0.9, gt=0.0, le=1.0)

    # Frames pulled (existing or newly extracted) before giving up with needs_input.
    max_frames_analyze: int = Field(default=10, ge=1)

    # Candidate list is truncated to this many after sorting by score.
    max_candidates: int = Field(default=5, ge=1)

    # -------------------------------------------------------------------------
    # Scoring Weights (must sum to 1.0)
    # score = w_snippet * text_overlap + w_actor * faces + w_decade * decade + w_genre * genre
    # -------------------------------------------------------------------------

    weight_snippet_similarity: float = 0.5
    # Face count in [1, 5]. Weak signal, kept for compatibility.
    weight_actor_match: float = 0.3
    weight_decade_match: float = 0.1
    weight_genre_match: float = 0.1

    # Added per selected chip that matches a reason already credited to the candidate.
    feedback_bonus: float = 0.2

    # -------------------------------------------------------------------------
    # Loop pacing
    # -------------------------------------------------------------------------

    # How long one inner-loop pass idles waiting for feedback before moving on.
    idle_wait_seconds: float = Field(default=0.5, gt=0.0)

    # Outbox capacity; overflow drops the oldest queued event.
    event_queue_size: int = Field(default=100, ge=1)

    # -------------------------------------------------------------------------
    # Frame analysis and query building
    # -------------------------------------------------------------------------

    # Extracted frames are scaled and padded to a square of this edge.
    frame_size: int = Field(default=512, ge=16)

    # Caption keywords kept in a search query.
    max_query_keywords: int = Field(default=8, ge=1)

    # Labels above this confidence become object chips.
    significant_label_confidence: float = 0.7

    @model_validator(mode="after")
    def weights_sum_to_one(self):
        total = (
            self.weight_snippet_similarity
            + self.weight_actor_match
            + self.weight_decade_match
            + self.weight_genre_match
        )
        if abs(total - 1.0) > 0.01:
            raise ValueError(f"Scoring weights must sum to 1.0, got {total}")
        return self

    @classmethod
    def from_dict(cls, config_dict: Dict) -> "IdentificationConfig":
        """
        Create config from a dictionary (e.g., loaded from JSON or env).

        Accepts flat keys or nested "weights" / "loop" sections. Zero or None
        values fall back to the defaults, unknown keys are ignored.
        """
        flat = {}
        if "weights" in config_dict:
            w = config_dict["weights"]
            mapping = {
                "snippet_similarity": "weight_snippet_similarity",
                "actor_match": "weight_actor_match",
                "decade_match": "weight_decade_match",
                "genre_match": "weight_genre_match",
                "feedback": "feedback_bonus",
            }
            for key, field_name in mapping.items():
                if key in w:
                    flat[field_name] = w[key]
        if "loop" in config_dict:
            flat.update(config_dict["loop"])
        flat.update({k: v for k, v in config_dict.items() if k not in ("weights", "loop")})
        allowed = set(cls.model_fields)
        filtered = {k: v for k, v in flat.items() if k in allowed and v not in (None, 0)}
        return cls.model_validate(filtered)


DEFAULT_CONFIG = IdentificationConfig()


def resolve_config(config: Optional["IdentificationConfig"]) -> "IdentificationConfig":
    """Return config or DEFAULT_CONFIG when none is provided."""
    return config if config is not None else DEFAULT_CONFIG
