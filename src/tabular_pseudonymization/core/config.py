"""Configuration management for the tabular pseudonymization system."""

import hashlib
import os
import yaml
from pathlib import Path
from typing import Optional
from pydantic import BaseModel, Field, field_validator, model_validator


class CounterConfig(BaseModel):
    """Configuration for the sequential and randomized counter strategies."""
    prefix: str = Field(default="PP", description="Text prepended to every label")
    pool_size: int = Field(default=999, description="Number of labels generated up front")
    width: Optional[int] = Field(default=None, description="Zero-padding width of the numeric part")

    @field_validator('pool_size')
    @classmethod
    def validate_pool_size(cls, v):
        if v < 1:
            raise ValueError('Label pool size must be at least 1')
        return v

    @model_validator(mode='after')
    def validate_width(self):
        minimum = len(str(self.pool_size))
        if self.width is None:
            self.width = minimum
        elif self.width < minimum:
            raise ValueError(
                f'Padding width {self.width} cannot hold a pool of {self.pool_size} labels '
                f'(need at least {minimum} digits)'
            )
        return self


class HashingConfig(BaseModel):
    """Configuration for the keyed-hash strategy."""
    algorithm: str = Field(default="sha256", description="hashlib digest used inside HMAC")
    truncate_to: Optional[int] = Field(default=None, description="Keep only the first N hex characters")
    separator: str = Field(default="\x1f", description="Joins identifying fields before hashing")
    max_collision_probability: float = Field(
        default=1e-6, description="Acceptable collision probability for truncated labels"
    )

    @field_validator('algorithm')
    @classmethod
    def validate_algorithm(cls, v):
        v = v.lower()
        if v not in hashlib.algorithms_available:
            raise ValueError(f'Unknown hash algorithm: {v}')
        if v.startswith('shake_'):
            raise ValueError('Variable-length digests cannot be used with HMAC')
        return v

    @field_validator('truncate_to')
    @classmethod
    def validate_truncate_to(cls, v):
        if v is not None and v < 1:
            raise ValueError('Truncation length must be at least 1 character')
        return v

    @field_validator('separator')
    @classmethod
    def validate_separator(cls, v):
        if not v:
            raise ValueError('Field separator must not be empty')
        return v

    @field_validator('max_collision_probability')
    @classmethod
    def validate_probability(cls, v):
        if not 0.0 < v < 1.0:
            raise ValueError('Collision probability must be between 0.0 and 1.0 (exclusive)')
        return v


class OutputConfig(BaseModel):
    """Configuration for the generated tables."""
    label_column: str = Field(default="label", description="Name of the label column")


class QualityAssuranceConfig(BaseModel):
    """Configuration for post-run validation."""
    enable_validation: bool = Field(default=True)


class Config(BaseModel):
    """Main configuration class for the tabular pseudonymization system."""

    counter: CounterConfig = Field(default_factory=CounterConfig)
    hashing: HashingConfig = Field(default_factory=HashingConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
    quality_assurance: QualityAssuranceConfig = Field(default_factory=QualityAssuranceConfig)

    # General settings
    debug: bool = Field(default=False)
    log_level: str = Field(default="INFO")

    @classmethod
    def from_yaml(cls, config_path: str) -> "Config":
        """Load configuration from YAML file."""
        config_path = Path(config_path)
        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(config_path, 'r', encoding='utf-8') as f:
            config_data = yaml.safe_load(f) or {}

        return cls(**config_data)

    def to_yaml(self, output_path: str) -> None:
        """Save configuration to YAML file."""
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        with open(output_path, 'w', encoding='utf-8') as f:
            yaml.safe_dump(self.model_dump(), f, default_flow_style=False, indent=2)


def load_config(config_path: Optional[str] = None) -> Config:
    """Load configuration from file, or fall back to defaults."""
    if config_path:
        return Config.from_yaml(config_path)

    default_paths = [
        "config/pseudonymization.yaml",
        "pseudonymization.yaml",
        os.path.expanduser("~/.tabular_pseudonymization/config.yaml"),
    ]

    for path in default_paths:
        if Path(path).exists():
            return Config.from_yaml(path)

    return Config()


# Default configuration used when callers pass none
_config: Optional[Config] = None


def get_config() -> Config:
    """Get the default configuration instance."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def set_config(config: Optional[Config]) -> None:
    """Replace the default configuration instance."""
    global _config
    _config = config
