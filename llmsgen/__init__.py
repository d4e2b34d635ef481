"""Length-budgeted llms.txt generation from Markdown documentation trees."""

from .config import ConfigError, LLMSConfig, config_from_mapping, default_config, load_config
from .models import (
    Artifact,
    ArtifactState,
    ComposedOutput,
    CompositionRequest,
    Document,
    Pattern,
    PriorityRecord,
    Tier,
    TieBreak,
    WorkAction,
    WorkItem,
)
from .pipeline import Pipeline
from .source_tree import DirectoryNotFoundError

__all__ = [
    "Artifact",
    "ArtifactState",
    "ComposedOutput",
    "CompositionRequest",
    "ConfigError",
    "DirectoryNotFoundError",
    "Document",
    "LLMSConfig",
    "Pattern",
    "Pipeline",
    "PriorityRecord",
    "Tier",
    "TieBreak",
    "WorkAction",
    "WorkItem",
    "config_from_mapping",
    "default_config",
    "load_config",
]
