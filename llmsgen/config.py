"""Configuration loading for llmsgen (llmsgen.yml)."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

import yaml

from .models import TieBreak

CONFIG_FILENAME = "llmsgen.yml"

DEFAULT_CHARACTER_LIMITS: Tuple[int, ...] = (100, 300, 1000, 2000)
DEFAULT_AUDIENCE: Tuple[str, ...] = ("framework-users",)
OUTPUT_FORMATS = ("txt", "md")


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed."""


@dataclass(frozen=True)
class CategoryConfig:
    """Weight and audience settings for one document category."""

    priority: int = 50
    audience: Tuple[str, ...] = ()


@dataclass(frozen=True)
class PathsConfig:
    """Filesystem locations for sources, per-document data and composed output."""

    docs_dir: Path
    data_dir: Path
    output_dir: Path


@dataclass(frozen=True)
class LLMSConfig:
    """Resolved, immutable settings passed explicitly to every component."""

    root: Path
    paths: PathsConfig
    supported_languages: Tuple[str, ...] = ("en",)
    default_language: str = "en"
    character_limits: Tuple[int, ...] = DEFAULT_CHARACTER_LIMITS
    categories: Mapping[str, CategoryConfig] = field(
        default_factory=lambda: MappingProxyType({})
    )
    quality_threshold: int = 70
    output_format: str = "txt"
    project_name: str = "Documentation"
    default_category: str = "guide"
    default_priority: int = 50
    minimum_budget: int = 2000
    tie_break: TieBreak = TieBreak.CATEGORY_WEIGHT_THEN_ID
    source_path: Optional[Path] = None

    def category_priority(self, category: str) -> int:
        """Return the configured weight for ``category`` or the default priority."""
        settings = self.categories.get(category)
        if settings is None:
            return self.default_priority
        return settings.priority

    def category_audience(self, category: str) -> Tuple[str, ...]:
        settings = self.categories.get(category)
        if settings is None or not settings.audience:
            return DEFAULT_AUDIENCE
        return settings.audience


def default_config(root: Path) -> LLMSConfig:
    """Return the built-in configuration rooted at ``root``."""
    return config_from_mapping({}, root)


def load_config(config_path: Path) -> LLMSConfig:
    """Load configuration from disk."""
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()

    if not config_file.exists():
        return default_config(root)

    data = read_config_mapping(config_file)
    config = config_from_mapping(data, root)
    return _with_source(config, config_file)


def read_config_mapping(path: Path) -> Dict[str, Any]:
    """Return the raw mapping stored in a config file."""
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise ConfigError(f"{path.name} must contain a mapping at the root")
    return loaded


def write_config_mapping(path: Path, data: Mapping[str, Any]) -> None:
    """Persist a raw config mapping back to YAML."""
    path.write_text(
        yaml.safe_dump(dict(data), sort_keys=False, allow_unicode=True),
        encoding="utf-8",
    )


def config_from_mapping(data: Mapping[str, Any], root: Path) -> LLMSConfig:
    """Build an :class:`LLMSConfig` from a parsed mapping.

    Values are coerced leniently; semantic problems such as an unsupported
    default language are left for the config validator to report.
    """
    if not isinstance(data, Mapping):
        raise ConfigError("configuration must be a mapping at the root")
    root = Path(root).expanduser().resolve()

    paths_data = _as_dict(data.get("paths"))
    paths = PathsConfig(
        docs_dir=_resolve_dir(root, paths_data.get("docs_dir"), "docs"),
        data_dir=_resolve_dir(root, paths_data.get("data_dir"), "data"),
        output_dir=_resolve_dir(root, paths_data.get("output_dir"), "output"),
    )

    generation = _as_dict(data.get("generation"))
    languages_raw = generation.get("supported_languages")
    languages = tuple(_as_str_list(languages_raw)) if languages_raw is not None else ("en",)
    default_language = _as_str(generation.get("default_language")) or (languages[0] if languages else "en")
    limits_raw = generation.get("character_limits")
    character_limits = (
        tuple(_as_int_list(limits_raw)) if limits_raw is not None else DEFAULT_CHARACTER_LIMITS
    )
    output_format = (_as_str(generation.get("output_format")) or "txt").lower()
    minimum_budget = _as_int(generation.get("minimum_budget"))
    tie_break = _as_tie_break(generation.get("tie_break"))

    categories: Dict[str, CategoryConfig] = {}
    for name, raw in _as_dict(data.get("categories")).items():
        entry = _as_dict(raw)
        priority = _as_int(entry.get("priority"))
        categories[str(name)] = CategoryConfig(
            priority=priority if priority is not None else 50,
            audience=tuple(_as_str_list(entry.get("audience"))),
        )

    quality = _as_dict(data.get("quality"))
    threshold = _as_int(quality.get("threshold"))

    defaults = _as_dict(data.get("defaults"))
    default_priority = _as_int(defaults.get("priority"))

    return LLMSConfig(
        root=root,
        paths=paths,
        supported_languages=languages,
        default_language=default_language,
        character_limits=character_limits,
        categories=MappingProxyType(categories),
        quality_threshold=threshold if threshold is not None else 70,
        output_format=output_format,
        project_name=_as_str(data.get("project_name")) or "Documentation",
        default_category=_as_str(defaults.get("category")) or "guide",
        default_priority=default_priority if default_priority is not None else 50,
        minimum_budget=minimum_budget if minimum_budget is not None else 2000,
        tie_break=tie_break,
    )


def _with_source(config: LLMSConfig, source: Path) -> LLMSConfig:
    return replace(config, source_path=source)


def _resolve_config_path(config_path: Path) -> Path:
    config_path = Path(config_path).expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    if config_path.suffix not in {".yml", ".yaml"}:
        return (config_path.parent / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _resolve_dir(root: Path, value: Any, default: str) -> Path:
    text = _as_str(value) or default
    candidate = Path(text).expanduser()
    if not candidate.is_absolute():
        candidate = root / candidate
    return candidate


def _as_tie_break(value: Any) -> TieBreak:
    text = _as_str(value)
    if not text:
        return TieBreak.CATEGORY_WEIGHT_THEN_ID
    try:
        return TieBreak(text.strip().lower())
    except ValueError as exc:
        choices = ", ".join(item.value for item in TieBreak)
        raise ConfigError(f"Unknown tie_break {text!r}; expected one of: {choices}") from exc


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float)) and not isinstance(value, bool) else None


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


def _as_int_list(value: Any) -> List[int]:
    if isinstance(value, (int, str)) and not isinstance(value, bool):
        value = [value]
    if not isinstance(value, Sequence) or isinstance(value, str):
        return []
    result: List[int] = []
    for item in value:
        number = _as_int(item)
        if number is not None:
            result.append(number)
    return result


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float)) and not isinstance(item, bool)]
    return []


__all__ = [
    "CONFIG_FILENAME",
    "CategoryConfig",
    "ConfigError",
    "LLMSConfig",
    "PathsConfig",
    "config_from_mapping",
    "default_config",
    "load_config",
    "read_config_mapping",
    "write_config_mapping",
]
