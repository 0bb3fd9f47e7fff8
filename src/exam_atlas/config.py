"""
Module: config

Purpose:
    Configuration dataclasses for Exam Atlas. Provides immutable settings
    for the Gemini adapter, local persistence and the bulk staging pipeline.

Key Classes:
    - AtlasConfig: Main application configuration

Key Functions:
    - load_config(): Build an AtlasConfig from environment variables

Dependencies:
    - dataclasses: For frozen dataclass support
    - python-dotenv: Loads a local .env before reading the environment

Used By:
    - exam_atlas.cli: Builds the store, classifier and studio session
    - exam_atlas.services.classifier: Model name, API key, retry delays
    - exam_atlas.studio: Enrichment delay and staging options
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional

from dotenv import load_dotenv

from exam_atlas.core.models.staging import DEFAULT_LINES, DEFAULT_TOPIC

DEFAULT_MODEL = "gemini-2.5-flash"


@dataclass(frozen=True)
class AtlasConfig:
    """
    Application configuration.

    Attributes:
        api_key: Google API key for Gemini. None disables remote calls.
        model_name: Gemini model used for classification and marking.
        data_dir: Directory holding one JSON document per collection.
        enrich_delay_s: Pause between rows during "enrich all" (default 0.5).
        marking_retry_delays: Backoff schedule in seconds for answer marking.
        default_topic: Placeholder topic for new staging rows.
        default_lines: Ruled answer lines when nothing better is known.
        strict_prefix_match: Require a non-digit after the identifier when
            matching question files to a row (off by default, "1.2" then
            also matches "1.20.png").
    """
    api_key: Optional[str] = None
    model_name: str = DEFAULT_MODEL
    data_dir: Path = field(default_factory=lambda: Path.cwd() / "workspace")
    enrich_delay_s: float = 0.5
    marking_retry_delays: tuple[float, ...] = (1.0, 2.0, 4.0, 8.0, 16.0)
    default_topic: str = DEFAULT_TOPIC
    default_lines: int = DEFAULT_LINES
    strict_prefix_match: bool = False

    def __post_init__(self) -> None:
        if self.enrich_delay_s < 0:
            raise ValueError(f"enrich_delay_s must be >= 0: {self.enrich_delay_s}")
        if self.default_lines < 0:
            raise ValueError(f"default_lines must be >= 0: {self.default_lines}")


def _as_bool(value: Optional[str]) -> bool:
    return (value or "").strip().lower() in {"1", "true", "yes", "on"}


def load_config(env: Optional[Mapping[str, str]] = None) -> AtlasConfig:
    """
    Build configuration from the environment.

    A ``.env`` file in the working directory is loaded first when ``env``
    is not given.

    Args:
        env: Explicit mapping to read instead of ``os.environ``.

    Returns:
        AtlasConfig populated from GOOGLE_API_KEY and EXAM_ATLAS_* variables.

    Example:
        >>> cfg = load_config({"EXAM_ATLAS_ENRICH_DELAY": "0"})
        >>> cfg.enrich_delay_s
        0.0
    """
    if env is None:
        load_dotenv(Path.cwd() / ".env")
        env = os.environ

    kwargs: dict = {"api_key": env.get("GOOGLE_API_KEY") or None}
    if env.get("EXAM_ATLAS_MODEL"):
        kwargs["model_name"] = env["EXAM_ATLAS_MODEL"]
    if env.get("EXAM_ATLAS_DATA_DIR"):
        kwargs["data_dir"] = Path(env["EXAM_ATLAS_DATA_DIR"]).expanduser()
    if env.get("EXAM_ATLAS_ENRICH_DELAY"):
        kwargs["enrich_delay_s"] = float(env["EXAM_ATLAS_ENRICH_DELAY"])
    if "EXAM_ATLAS_STRICT_PREFIX" in env:
        kwargs["strict_prefix_match"] = _as_bool(env["EXAM_ATLAS_STRICT_PREFIX"])
    return AtlasConfig(**kwargs)
