"""
Configuration resolution.

Each setting is resolved with the same hierarchy:
1. Explicit argument (CLI flag, API request field)
2. Environment variable (BFSTEP_CAPACITY, BFSTEP_OVERFLOW, BFSTEP_BREAKPOINT, BFSTEP_STEP_LIMIT)
3. Local context file: .bfstep/config.json in the working directory
4. Defaults from StepperConfig
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Dict, Optional

from .kernel.schema import StepperConfig


class ConfigError(ValueError):
    """The context file exists but cannot be read as a settings object."""


ENV_VARS = {
    "capacity": "BFSTEP_CAPACITY",
    "overflow": "BFSTEP_OVERFLOW",
    "breakpoint": "BFSTEP_BREAKPOINT",
    "step_limit": "BFSTEP_STEP_LIMIT",
}


def get_context_file(cwd: Optional[str] = None) -> Path:
    """Get the path to the context file."""
    return Path(cwd or Path.cwd()) / ".bfstep" / "config.json"


def load_context(cwd: Optional[str] = None) -> Dict[str, Any]:
    """
    Load settings from .bfstep/config.json if it exists.

    Raises:
        ConfigError: the file is not a JSON object.
    """
    context_file = get_context_file(cwd)
    if not context_file.exists():
        return {}
    try:
        settings = json.loads(context_file.read_text())
    except json.JSONDecodeError as e:
        raise ConfigError(f"{context_file} is not valid JSON: {e}") from e
    if not isinstance(settings, dict):
        raise ConfigError(f"{context_file} must hold a JSON object")
    return settings


def save_context(settings: Dict[str, Any], cwd: Optional[str] = None) -> Path:
    """Save settings to .bfstep/config.json."""
    context_file = get_context_file(cwd)
    context_file.parent.mkdir(parents=True, exist_ok=True)
    context_file.write_text(json.dumps(settings, indent=2))
    return context_file


def resolve_config(cwd: Optional[str] = None, **explicit: Any) -> StepperConfig:
    """
    Merge explicit settings, environment and context file into a StepperConfig.

    Explicit values of None are ignored so argparse namespaces can be passed
    through unchanged.

    Raises:
        ConfigError: the context file is malformed.
        pydantic.ValidationError: a resolved value is invalid.
    """
    settings: Dict[str, Any] = {}

    context = load_context(cwd)
    for key in ENV_VARS:
        if context.get(key) is not None:
            settings[key] = context[key]

    for key, env_name in ENV_VARS.items():
        env_value = os.environ.get(env_name)
        if env_value:
            settings[key] = env_value

    for key, value in explicit.items():
        if key in ENV_VARS and value is not None:
            settings[key] = value

    return StepperConfig(**settings)
