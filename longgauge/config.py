"""Configuration models using Pydantic for validation."""
from typing import Dict, List, Literal, Optional, Union
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
import os

from longgauge.labels import is_valid_name


class LabelKeySpec(BaseModel):
    """A declared label key."""
    key: str
    description: str = ""

    @field_validator('key')
    @classmethod
    def validate_key(cls, v):
        if not is_valid_name(v):
            raise ValueError(f"Invalid label key: {v!r}")
        return v


class GaugeOptions(BaseModel):
    """Everything needed to build a LongGauge."""
    name: str
    description: str = ""
    unit: str = "1"
    label_keys: List[LabelKeySpec] = Field(default_factory=list)
    # Label value sequences to create at startup, in label key order
    initial_series: List[List[Optional[str]]] = Field(default_factory=list)

    @field_validator('name')
    @classmethod
    def validate_name(cls, v):
        if not is_valid_name(v):
            raise ValueError(f"Invalid metric name: {v!r}")
        return v

    @field_validator('label_keys', mode='before')
    @classmethod
    def coerce_label_keys(cls, v):
        """Allow label keys to be given as bare strings."""
        if v is None:
            return []
        return [{"key": k} if isinstance(k, str) else k for k in v]

    @model_validator(mode='after')
    def validate_shape(self):
        keys = [k.key for k in self.label_keys]
        if len(keys) != len(set(keys)):
            raise ValueError(f"Gauge '{self.name}' declares duplicate label keys")
        for values in self.initial_series:
            if len(values) != len(keys):
                raise ValueError(
                    f"Gauge '{self.name}' initial series {values} "
                    f"does not match label keys {keys}"
                )
        return self


class PrometheusExporterConfig(BaseModel):
    """Prometheus pull exporter configuration."""
    enabled: bool = True
    port: int = 8000
    prefix: str = ""
    bind_address: str = "0.0.0.0"


class OTELExporterConfig(BaseModel):
    """OpenTelemetry push exporter configuration."""
    enabled: bool = False
    endpoint: str = "localhost:4317"
    insecure: bool = True
    prefix: str = ""
    export_interval_s: int = 10
    headers: Dict[str, str] = Field(default_factory=dict)
    resource: Dict[str, str] = Field(default_factory=dict)


class ExportersConfig(BaseModel):
    """Configuration for all exporters."""
    prometheus: PrometheusExporterConfig = Field(default_factory=PrometheusExporterConfig)
    otel: OTELExporterConfig = Field(default_factory=OTELExporterConfig)


class GlobalConfig(BaseModel):
    """Global configuration settings."""
    tick_interval_s: Union[int, float] = 1
    log_level: str = "INFO"
    log_format: Literal["json", "text"] = "text"
    control_api_port: int = 8081
    control_api_host: str = "0.0.0.0"

    @field_validator('tick_interval_s')
    @classmethod
    def validate_tick_interval(cls, v):
        if v <= 0:
            raise ValueError("tick_interval_s must be positive")
        return v


class Config(BaseModel):
    """Root configuration model."""
    model_config = ConfigDict(populate_by_name=True)

    global_: GlobalConfig = Field(default_factory=GlobalConfig, alias="global")
    exporters: ExportersConfig = Field(default_factory=ExportersConfig)
    gauges: List[GaugeOptions] = Field(default_factory=list)

    @field_validator('gauges')
    @classmethod
    def validate_gauges(cls, v):
        """Gauge names must be unique."""
        names = [g.name for g in v]
        if len(names) != len(set(names)):
            raise ValueError("Gauge names must be unique")
        return v


def load_config(config_path: str) -> Config:
    """Load and validate configuration from YAML file."""
    import yaml

    if not os.path.exists(config_path):
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(config_path, 'r') as f:
        raw_config = yaml.safe_load(f) or {}

    # Apply environment variable overrides
    if env_endpoint := os.getenv('OTEL_ENDPOINT'):
        raw_config.setdefault('exporters', {}).setdefault('otel', {})['endpoint'] = env_endpoint

    if env_log_level := os.getenv('LOG_LEVEL'):
        raw_config.setdefault('global', {})['log_level'] = env_log_level

    try:
        return Config(**raw_config)
    except Exception as e:
        raise ValueError(f"Configuration validation failed: {e}")
