"""Configuration models using Pydantic for validation."""
from typing import Dict, List, Optional, Any, Literal
from pydantic import BaseModel, Field, field_validator
import os

from prom_sink.naming import NamingRules
from prom_sink.records import MetricKind, MetricRecord


class ExporterConfig(BaseModel):
    """HTTP scrape endpoint configuration."""
    bind_address: str = "0.0.0.0"
    port: int = 9464
    include_type_lines: bool = True


class NamingConfig(BaseModel):
    """Opaque-name detection for the canonicalizer."""
    opaque_prefixes: List[str] = Field(default_factory=lambda: ["rocksdb"])
    dotted_names_opaque: bool = True

    def to_rules(self) -> NamingRules:
        return NamingRules(tuple(self.opaque_prefixes), self.dotted_names_opaque)


class LabelsConfig(BaseModel):
    """Tag handling when building label sets."""
    excluded_tags: List[str] = Field(default_factory=lambda: ["numopenconnectionsperuser"])


class CollectionConfig(BaseModel):
    """Collection cycle settings."""
    interval_s: float = 10.0

    @field_validator('interval_s')
    @classmethod
    def validate_interval(cls, v):
        if v <= 0:
            raise ValueError("Collection interval must be positive")
        return v


class MetricEntry(BaseModel):
    """A metric inside a statically configured record."""
    name: str
    value: float
    kind: Literal["counter", "gauge"] = "gauge"


class RecordEntry(BaseModel):
    """A statically configured record."""
    name: str
    tags: Dict[str, str] = Field(default_factory=dict)
    metrics: List[MetricEntry] = Field(default_factory=list)

    def to_record(self) -> MetricRecord:
        return MetricRecord.from_dict({
            "name": self.name,
            "tags": self.tags,
            "metrics": [
                {"name": m.name, "value": m.value, "kind": MetricKind(m.kind)}
                for m in self.metrics
            ],
        })


class GlobalConfig(BaseModel):
    """Global configuration settings."""
    log_level: str = "INFO"
    log_format: Literal["json", "text"] = "text"


class Config(BaseModel):
    """Root configuration model."""
    global_: GlobalConfig = Field(default_factory=GlobalConfig, alias="global")
    exporter: ExporterConfig = Field(default_factory=ExporterConfig)
    naming: NamingConfig = Field(default_factory=NamingConfig)
    labels: LabelsConfig = Field(default_factory=LabelsConfig)
    collection: CollectionConfig = Field(default_factory=CollectionConfig)
    records: List[RecordEntry] = Field(default_factory=list)

    class Config:
        populate_by_name = True

    def static_records(self) -> List[MetricRecord]:
        """Records declared directly in the configuration file."""
        return [entry.to_record() for entry in self.records]


def load_config(config_path: str) -> Config:
    """Load and validate configuration from YAML file."""
    import yaml

    if not os.path.exists(config_path):
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(config_path, 'r') as f:
        raw_config: Optional[Dict[str, Any]] = yaml.safe_load(f)

    raw_config = raw_config or {}

    # Apply environment variable overrides
    if env_port := os.getenv('PROM_SINK_PORT'):
        raw_config.setdefault('exporter', {})['port'] = int(env_port)

    if env_log_level := os.getenv('LOG_LEVEL'):
        raw_config.setdefault('global', {})['log_level'] = env_log_level

    try:
        return Config(**raw_config)
    except Exception as e:
        raise ValueError(f"Configuration validation failed: {e}")
