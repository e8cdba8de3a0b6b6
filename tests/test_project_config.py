"""
Unit tests for takeoff_bridge.project_config module.

Tests:
- Configuration dataclasses
- JSON serialization/deserialization
- Config file loading
- Config merging
"""

import json
import logging
import tempfile
from pathlib import Path

from takeoff_bridge.project_config import (
    CONFIG_FILENAME,
    DrawingConfig,
    LoggingConfig,
    ProjectConfig,
    StorageConfig,
    create_sample_config,
    find_config_file,
    load_config,
    merge_configs,
)


class TestStorageConfig:
    """Tests for StorageConfig dataclass."""

    def test_default_values(self):
        """Test default chunking values."""
        config = StorageConfig()
        assert config.chunk_size == 250
        assert config.chunk_ceiling == 20
        assert config.parts_namespace == "METALPARTS"

    def test_codec(self):
        """Test codec built from the section."""
        codec = StorageConfig(chunk_size=100, chunk_ceiling=8).codec()
        assert codec.chunk_size == 100
        assert codec.ceiling == 8

    def test_parts_layout(self):
        """Test layout uses the configured namespaces."""
        layout = StorageConfig(parts_namespace="PARTS", component_namespace="COMP").parts_layout()
        assert layout.base == "PARTS"
        assert layout.info == "PARTSINFO"
        assert layout.marker_namespace == "COMP"


class TestDrawingConfig:
    """Tests for DrawingConfig dataclass."""

    def test_default_values(self):
        """Test default drawing config values."""
        config = DrawingConfig()
        assert config.dxf_version == "R2010"
        assert config.component_entity == "LWPOLYLINE"


class TestLoggingConfig:
    """Tests for LoggingConfig dataclass."""

    def test_level_number(self):
        """Test level names map to logging levels."""
        assert LoggingConfig(level="debug").level_number() == logging.DEBUG
        assert LoggingConfig(level="WARNING").level_number() == logging.WARNING

    def test_unknown_level_falls_back(self):
        """Test unknown level names fall back to INFO."""
        assert LoggingConfig(level="LOUD").level_number() == logging.INFO


class TestProjectConfig:
    """Tests for ProjectConfig dataclass."""

    def test_default_config(self):
        """Test creating default configuration."""
        config = ProjectConfig()
        assert isinstance(config.storage, StorageConfig)
        assert isinstance(config.drawing, DrawingConfig)
        assert isinstance(config.logging, LoggingConfig)

    def test_to_dict(self):
        """Test converting config to dictionary."""
        d = ProjectConfig().to_dict()

        assert set(d) == {'storage', 'drawing', 'logging'}
        assert d['storage']['chunk_size'] == 250

    def test_to_json(self):
        """Test converting config to JSON string."""
        data = json.loads(ProjectConfig().to_json())
        assert data['drawing']['dxf_version'] == 'R2010'

    def test_from_dict(self):
        """Test creating config from dictionary."""
        data = {
            'storage': {'chunk_size': 200, 'chunk_ceiling': 30},
            'logging': {'level': 'DEBUG'},
        }
        config = ProjectConfig.from_dict(data)

        assert config.storage.chunk_size == 200
        assert config.storage.chunk_ceiling == 30
        assert config.logging.level == 'DEBUG'

    def test_unknown_keys_ignored(self):
        """Test unknown sections, unknown keys and comments are ignored."""
        data = {
            '_comment': 'x',
            'output': {'formats': ['svg']},
            'storage': {'_comment': 'y', 'compression': 'zlib', 'chunk_size': 120},
        }
        config = ProjectConfig.from_dict(data)

        assert config.storage.chunk_size == 120
        assert not hasattr(config.storage, 'compression')

    def test_from_json(self):
        """Test creating config from JSON string."""
        json_str = '''
        {
            "drawing": {"dxf_version": "R2018"},
            "storage": {"parts_namespace": "PARTS"}
        }
        '''
        config = ProjectConfig.from_json(json_str)

        assert config.drawing.dxf_version == 'R2018'
        assert config.storage.parts_namespace == 'PARTS'

    def test_save_and_load(self):
        """Test saving and loading config file."""
        config = ProjectConfig()
        config.storage.chunk_size = 180
        config.logging.json_file = 'takeoff.log.json'

        with tempfile.NamedTemporaryFile(suffix='.json', delete=False) as f:
            temp_path = f.name

        try:
            config.save(temp_path)

            loaded = ProjectConfig.load(temp_path)

            assert loaded.storage.chunk_size == 180
            assert loaded.logging.json_file == 'takeoff.log.json'
        finally:
            Path(temp_path).unlink(missing_ok=True)

    def test_partial_dict_doesnt_break(self):
        """Test that partial config dict doesn't raise errors."""
        config = ProjectConfig.from_dict({'drawing': {'dxf_version': 'R2000'}})

        assert config.drawing.dxf_version == 'R2000'
        assert config.storage.chunk_ceiling == 20


class TestFindConfigFile:
    """Tests for find_config_file function."""

    def test_explicit_config_found(self):
        """Test finding explicit config path."""
        with tempfile.NamedTemporaryFile(suffix='.json', delete=False) as f:
            temp_path = f.name
            f.write(b'{}')

        try:
            found = find_config_file(explicit_config=temp_path)
            assert found == Path(temp_path)
        finally:
            Path(temp_path).unlink(missing_ok=True)

    def test_drawing_directory(self, tmp_path):
        """Test config next to the drawing is found."""
        config_path = tmp_path / CONFIG_FILENAME
        config_path.write_text('{}')

        found = find_config_file(drawing_path=tmp_path / "takeoff.dxf")

        assert found == config_path

    def test_explicit_config_not_found(self, tmp_path, monkeypatch):
        """Test that a missing explicit config falls through the search."""
        monkeypatch.chdir(tmp_path)
        monkeypatch.setattr(Path, 'home', lambda: tmp_path)
        found = find_config_file(explicit_config='/nonexistent/path.json')
        assert found is None


class TestLoadConfig:
    """Tests for load_config function."""

    def test_load_returns_defaults_when_no_file(self, tmp_path, monkeypatch):
        """Test that load_config returns defaults when no file found."""
        monkeypatch.chdir(tmp_path)
        monkeypatch.setattr(Path, 'home', lambda: tmp_path)
        config = load_config()
        assert config == ProjectConfig()

    def test_load_from_explicit_file(self):
        """Test loading from explicit config file."""
        with tempfile.NamedTemporaryFile(suffix='.json', delete=False, mode='w') as f:
            json.dump({'storage': {'chunk_size': 64}}, f)
            temp_path = f.name

        try:
            config = load_config(explicit_config=temp_path)
            assert config.storage.chunk_size == 64
        finally:
            Path(temp_path).unlink(missing_ok=True)

    def test_load_invalid_json_returns_defaults(self):
        """Test that invalid JSON returns defaults."""
        with tempfile.NamedTemporaryFile(suffix='.json', delete=False, mode='w') as f:
            f.write('not valid json {{{')
            temp_path = f.name

        try:
            config = load_config(explicit_config=temp_path)
            assert config.storage.chunk_size == 250
        finally:
            Path(temp_path).unlink(missing_ok=True)


class TestMergeConfigs:
    """Tests for merge_configs function."""

    def test_override_non_default_values(self):
        """Test that non-default values override base."""
        base = ProjectConfig()
        override = ProjectConfig()
        override.storage.chunk_size = 100

        merged = merge_configs(base, override)

        assert merged.storage.chunk_size == 100

    def test_default_values_not_overridden(self):
        """Test that default values don't override base."""
        base = ProjectConfig()
        base.drawing.dxf_version = 'R2018'
        override = ProjectConfig()

        merged = merge_configs(base, override)

        assert merged.drawing.dxf_version == 'R2018'

    def test_base_not_modified(self):
        """Test that merging returns a new config."""
        base = ProjectConfig()
        override = ProjectConfig()
        override.logging.level = 'DEBUG'

        merge_configs(base, override)

        assert base.logging.level == 'INFO'


class TestCreateSampleConfig:
    """Tests for create_sample_config function."""

    def test_sample_loads(self, tmp_path):
        """Test that the sample config loads back to the defaults."""
        path = tmp_path / CONFIG_FILENAME
        create_sample_config(path)

        assert ProjectConfig.load(path) == ProjectConfig()

    def test_sample_has_comments(self, tmp_path):
        """Test that sample config has documentation comments."""
        path = tmp_path / CONFIG_FILENAME
        create_sample_config(path)

        data = json.loads(path.read_text(encoding='utf-8'))

        assert '_comment' in data
        assert '_comment' in data['storage']
