"""
JSON project configuration for takeoff_bridge.

Search order for `.takeoff.json`:
1. Explicit config path via CLI
2. The drawing's directory
3. The current directory
4. The user's home directory

Example .takeoff.json:
{
    "storage": {
        "chunk_size": 250,
        "chunk_ceiling": 20
    },
    "drawing": {
        "dxf_version": "R2018"
    },
    "logging": {
        "level": "DEBUG",
        "json_file": "takeoff.log.json"
    }
}
"""

import json
import logging
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Optional, Union

from takeoff_bridge.xdata.codec import (
    DEFAULT_CHUNK_CEILING,
    DEFAULT_CHUNK_SIZE,
    ChunkCodec,
)
from takeoff_bridge.xdata.entity_store import ChunkLayout

logger = logging.getLogger(__name__)

CONFIG_FILENAME = ".takeoff.json"


@dataclass
class StorageConfig:
    """Chunking parameters and record namespaces."""
    chunk_size: int = DEFAULT_CHUNK_SIZE
    chunk_ceiling: int = DEFAULT_CHUNK_CEILING
    parts_namespace: str = "METALPARTS"
    component_namespace: str = "METALCOMP"

    def codec(self) -> ChunkCodec:
        return ChunkCodec(chunk_size=self.chunk_size, ceiling=self.chunk_ceiling)

    def parts_layout(self) -> ChunkLayout:
        return ChunkLayout(self.parts_namespace, marker=self.component_namespace)


@dataclass
class DrawingConfig:
    """DXF settings for drawings created by the tools."""
    dxf_version: str = "R2010"
    component_entity: str = "LWPOLYLINE"  # "" = any entity type


@dataclass
class LoggingConfig:
    level: str = "INFO"
    json_file: str = ""

    def level_number(self) -> int:
        level = logging.getLevelName(self.level.upper())
        return level if isinstance(level, int) else logging.INFO


@dataclass
class ProjectConfig:
    """Complete project configuration."""
    storage: StorageConfig = field(default_factory=StorageConfig)
    drawing: DrawingConfig = field(default_factory=DrawingConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False)

    def save(self, path: Union[str, Path]) -> None:
        path = Path(path)
        with open(path, 'w', encoding='utf-8') as f:
            f.write(self.to_json())
        logger.info("Configuration saved to %s", path)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ProjectConfig':
        """Build a configuration; unknown sections and keys are ignored."""
        config = cls()
        for section in fields(cls):
            values = data.get(section.name)
            if not isinstance(values, dict):
                continue
            target = getattr(config, section.name)
            for key, value in values.items():
                if hasattr(target, key) and not key.startswith('_'):
                    setattr(target, key, value)
        return config

    @classmethod
    def from_json(cls, json_str: str) -> 'ProjectConfig':
        return cls.from_dict(json.loads(json_str))

    @classmethod
    def load(cls, path: Union[str, Path]) -> 'ProjectConfig':
        """Load configuration from a JSON file.

        Raises:
            FileNotFoundError: If file doesn't exist
            json.JSONDecodeError: If file is not valid JSON
        """
        path = Path(path)
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
        logger.info("Configuration loaded from %s", path)
        return cls.from_dict(data)


def find_config_file(
    drawing_path: Optional[Union[str, Path]] = None,
    explicit_config: Optional[Union[str, Path]] = None,
) -> Optional[Path]:
    """Find the configuration file using the search order above.

    Returns:
        Path to config file if found, None otherwise
    """
    if explicit_config:
        explicit = Path(explicit_config)
        if explicit.exists():
            return explicit
        logger.warning("Explicit config not found: %s", explicit)

    candidates = []
    if drawing_path:
        candidates.append(Path(drawing_path).parent / CONFIG_FILENAME)
    candidates.append(Path.cwd() / CONFIG_FILENAME)
    candidates.append(Path.home() / CONFIG_FILENAME)

    for candidate in candidates:
        if candidate.exists():
            return candidate
    return None


def load_config(
    drawing_path: Optional[Union[str, Path]] = None,
    explicit_config: Optional[Union[str, Path]] = None,
) -> ProjectConfig:
    """Load configuration, falling back to defaults when none is usable."""
    config_path = find_config_file(drawing_path, explicit_config)

    if config_path:
        try:
            return ProjectConfig.load(config_path)
        except (json.JSONDecodeError, IOError) as e:
            logger.error("Failed to load config %s: %s", config_path, e)

    return ProjectConfig()


def merge_configs(base: ProjectConfig, override: ProjectConfig) -> ProjectConfig:
    """Merge two configurations; only non-default override values apply."""
    merged = ProjectConfig.from_dict(base.to_dict())
    defaults = ProjectConfig()

    for section in fields(ProjectConfig):
        override_section = getattr(override, section.name)
        default_section = getattr(defaults, section.name)
        merged_section = getattr(merged, section.name)
        for key, value in asdict(override_section).items():
            if value != getattr(default_section, key):
                setattr(merged_section, key, value)

    return merged


def create_sample_config(path: Union[str, Path] = CONFIG_FILENAME) -> None:
    """Write a commented sample configuration file."""
    sample = {
        "_comment": "Takeoff drawing attribute storage configuration",
        "_version": "1.0",
        "storage": {
            "_comment": "Chunked record layout; chunk_size is in characters",
            "chunk_size": DEFAULT_CHUNK_SIZE,
            "chunk_ceiling": DEFAULT_CHUNK_CEILING,
            "parts_namespace": "METALPARTS",
            "component_namespace": "METALCOMP",
        },
        "drawing": {
            "_comment": "DXF settings",
            "dxf_version": "R2010",
            "component_entity": "LWPOLYLINE",
        },
        "logging": {
            "_comment": "Console level and optional JSON log file",
            "level": "INFO",
            "json_file": "",
        },
    }

    path = Path(path)
    with open(path, 'w', encoding='utf-8') as f:
        json.dump(sample, f, indent=2, ensure_ascii=False)

    logger.info("Sample configuration created: %s", path)
