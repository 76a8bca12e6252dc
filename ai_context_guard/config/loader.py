"""
Configuration management and loading.

Handles calibration overrides, extra registry entries and tokenizer settings.
"""

from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Dict, List, Optional

import yaml

from ai_context_guard.core.calibration import DEFAULT_CALIBRATION, Calibration
from ai_context_guard.core.models import MODEL_REGISTRY, ModelRegistry, ModelSpec
from ai_context_guard.core.token_counter import (
    BACKEND_SUBPROCESS,
    BACKEND_TIKTOKEN,
    TokenCounter,
    get_token_counter,
)


@dataclass(frozen=True)
class TokenizerConfig:
    """Tokenizer adapter selection."""
    backend: str = BACKEND_TIKTOKEN
    python: Optional[str] = None
    timeout: Optional[float] = None

    def __post_init__(self):
        """Validate tokenizer settings."""
        if self.backend not in (BACKEND_TIKTOKEN, BACKEND_SUBPROCESS):
            raise ValueError(
                f"tokenizer backend must be one of: {[BACKEND_TIKTOKEN, BACKEND_SUBPROCESS]}"
            )
        if self.timeout is not None and self.timeout <= 0:
            raise ValueError("tokenizer timeout must be > 0")

    def create_counter(self) -> TokenCounter:
        return get_token_counter(self.backend, python=self.python, timeout=self.timeout)


@dataclass(frozen=True)
class GuardConfig:
    """Complete token accounting configuration."""
    calibration: Calibration = DEFAULT_CALIBRATION
    registry: ModelRegistry = MODEL_REGISTRY
    tokenizer: TokenizerConfig = field(default_factory=TokenizerConfig)


def load_guard_config(path: str) -> GuardConfig:
    """Load and validate configuration from a YAML file.

    Every section is optional; unknown keys are rejected so a typo never
    silently leaves a default constant in place.

    Args:
        path: Path to YAML configuration file

    Returns:
        Validated GuardConfig object

    Raises:
        FileNotFoundError: If config file doesn't exist
        yaml.YAMLError: If YAML is invalid
        ValueError: If configuration is invalid
    """
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(config_path, 'r', encoding='utf-8') as f:
        try:
            raw_config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise yaml.YAMLError(f"Invalid YAML in config file {path}: {e}")

    if not raw_config:
        raise ValueError("Configuration file is empty")
    if not isinstance(raw_config, dict):
        raise ValueError("Configuration must be a dictionary")

    allowed_top_keys = {'calibration', 'models', 'tokenizer'}
    unknown_keys = set(raw_config.keys()) - allowed_top_keys
    if unknown_keys:
        raise ValueError(f"Unknown configuration keys: {unknown_keys}")

    calibration = _parse_calibration(raw_config.get('calibration') or {})
    registry = MODEL_REGISTRY.with_models(_parse_models(raw_config.get('models') or {}))
    _validate_upgrades(registry)
    tokenizer = _parse_tokenizer(raw_config.get('tokenizer') or {})

    return GuardConfig(calibration=calibration, registry=registry, tokenizer=tokenizer)


def _parse_calibration(data: Dict) -> Calibration:
    """Parse calibration overrides on top of the defaults.

    Raises:
        ValueError: If a key is unknown or a value is not a non-negative integer
    """
    if not isinstance(data, dict):
        raise ValueError("'calibration' must be a dictionary")

    allowed_keys = {f.name for f in fields(Calibration)}
    unknown_keys = set(data.keys()) - allowed_keys
    if unknown_keys:
        raise ValueError(f"Unknown calibration keys: {unknown_keys}")

    return Calibration(**data)


def _parse_models(data: Dict) -> List[ModelSpec]:
    """Parse extra registry entries keyed by model identifier."""
    if not isinstance(data, dict):
        raise ValueError("'models' must be a dictionary")

    specs = []
    allowed_keys = {'context_length', 'encoding', 'per_message_overhead', 'upgrade'}
    for model, entry in data.items():
        path = f"models.{model}"
        if not isinstance(entry, dict):
            raise ValueError(f"Model '{model}' must be a dictionary")

        unknown_keys = set(entry.keys()) - allowed_keys
        if unknown_keys:
            raise ValueError(f"Unknown keys in {path}: {unknown_keys}")

        if 'context_length' not in entry:
            raise ValueError(f"Missing required 'context_length' in {path}")
        context = entry['context_length']
        if not isinstance(context, int) or isinstance(context, bool):
            raise ValueError(f"'context_length' in {path} must be an integer")

        if 'encoding' not in entry:
            raise ValueError(f"Missing required 'encoding' in {path}")
        if not isinstance(entry['encoding'], str):
            raise ValueError(f"'encoding' in {path} must be a string")

        overhead = entry.get('per_message_overhead')
        if overhead is not None and (not isinstance(overhead, int) or isinstance(overhead, bool)):
            raise ValueError(f"'per_message_overhead' in {path} must be an integer")

        upgrade = entry.get('upgrade')
        if upgrade is not None and not isinstance(upgrade, str):
            raise ValueError(f"'upgrade' in {path} must be a string")

        specs.append(ModelSpec(
            model=str(model),
            context_length=context,
            encoding=entry['encoding'],
            per_message_overhead=overhead,
            upgrade=upgrade,
        ))
    return specs


def _validate_upgrades(registry: ModelRegistry) -> None:
    """Ensure every upgrade target names a registered model.

    Raises:
        ValueError: If an upgrade target is not in the registry
    """
    for model in registry.models():
        upgrade = registry.get_spec(model).upgrade
        if upgrade is not None and upgrade not in registry.specs:
            raise ValueError(f"Unknown upgrade target '{upgrade}' in models.{model}")


def _parse_tokenizer(data: Dict) -> TokenizerConfig:
    """Parse tokenizer adapter settings."""
    if not isinstance(data, dict):
        raise ValueError("'tokenizer' must be a dictionary")

    allowed_keys = {'backend', 'python', 'timeout'}
    unknown_keys = set(data.keys()) - allowed_keys
    if unknown_keys:
        raise ValueError(f"Unknown tokenizer keys: {unknown_keys}")

    timeout = data.get('timeout')
    if timeout is not None and (not isinstance(timeout, (int, float)) or isinstance(timeout, bool)):
        raise ValueError("'timeout' in tokenizer must be a number")

    return TokenizerConfig(
        backend=str(data.get('backend', BACKEND_TIKTOKEN)).lower(),
        python=data.get('python'),
        timeout=float(timeout) if timeout is not None else None,
    )
