"""Layered config loading on top of pydantic-settings.

Later layers win:

    built-in defaults
    ~/.config/gcovview/config.yaml
    <root>/.gcovview/config.yaml
    GCOVVIEW__SECTION__KEY environment variables
    keyword arguments to load_config()
"""

from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

from gcovview.config.models import GcovViewConfig, IngestionConfig, LoggingConfig, ToolConfig
from gcovview.core.errors import ConfigError

GLOBAL_CONFIG_PATH = Path("~/.config/gcovview/config.yaml").expanduser()
PROJECT_CONFIG_NAME = Path(".gcovview") / "config.yaml"

WORKSPACE_FOLDER_VARIABLE = "${workspaceFolder}"


def _load_yaml(path: Path) -> dict[str, Any]:
    """Mapping stored in `path`; a missing or empty file gives ``{}``."""
    if not path.is_file():
        return {}
    try:
        data = yaml.safe_load(path.read_text())
    except yaml.YAMLError as e:
        raise ConfigError.parse_error(str(path), str(e)) from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError.parse_error(str(path), "top level must be a mapping")
    return data


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            value = _deep_merge(current, value)
        merged[key] = value
    return merged


class _YamlLayers(PydanticBaseSettingsSource):
    """The already merged YAML files, as the lowest-priority settings source."""

    def __init__(self, settings_cls: type[BaseSettings], data: dict[str, Any]) -> None:
        super().__init__(settings_cls)
        self._data = data

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:  # noqa: ARG002
        value = self._data.get(field_name)
        return value, field_name, value is not None

    def __call__(self) -> dict[str, Any]:
        return self._data


def _settings_for(data: dict[str, Any]) -> type[BaseSettings]:
    # One class per call so concurrent loads never share YAML state.
    class _Settings(BaseSettings):
        model_config = SettingsConfigDict(
            env_prefix="GCOVVIEW__",
            env_nested_delimiter="__",
            case_sensitive=False,
        )

        logging: LoggingConfig = LoggingConfig()
        ingestion: IngestionConfig = IngestionConfig()
        tool: ToolConfig = ToolConfig()

        @classmethod
        def settings_customise_sources(
            cls,
            settings_cls: type[BaseSettings],
            init_settings: PydanticBaseSettingsSource,
            env_settings: PydanticBaseSettingsSource,
            dotenv_settings: PydanticBaseSettingsSource,  # noqa: ARG003
            file_secret_settings: PydanticBaseSettingsSource,  # noqa: ARG003
        ) -> tuple[PydanticBaseSettingsSource, ...]:
            return init_settings, env_settings, _YamlLayers(settings_cls, data)

    return _Settings


def load_config(root: Path | None = None, **kwargs: Any) -> GcovViewConfig:
    """Resolve the configuration for the project at `root` (default: cwd).

    Keyword arguments are section overrides, e.g. ``tool={"executable": "gcov-13"}``.

    Raises:
        ConfigError: A YAML file is malformed or a value fails validation.
    """
    project_dir = root if root is not None else Path.cwd()
    data = _deep_merge(
        _load_yaml(GLOBAL_CONFIG_PATH),
        _load_yaml(project_dir / PROJECT_CONFIG_NAME),
    )
    try:
        settings = _settings_for(data)(**kwargs)
    except ValidationError as e:
        first = e.errors()[0]
        location = ".".join(str(part) for part in first["loc"])
        raise ConfigError.invalid_value(location, first.get("input"), first["msg"]) from e
    return GcovViewConfig.model_validate(settings.model_dump())


def resolve_build_directories(config: GcovViewConfig, root: Path) -> list[Path]:
    """Directories to scan for coverage data, with ${workspaceFolder} expanded."""
    root = root.resolve()
    directories: list[Path] = []
    for entry in config.ingestion.build_directories:
        path = Path(entry.replace(WORKSPACE_FOLDER_VARIABLE, str(root))).expanduser()
        if not path.is_absolute():
            path = root / path
        directories.append(path)
    if not directories:
        directories.append(root)
    return directories
