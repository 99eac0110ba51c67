import json
import os
from pathlib import Path

from pydantic import Field, PositiveInt, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from classsplit.exceptions import ConfigurationError

DEFAULT_FILENAMES = ['classsplit.yaml', 'classsplit.yml']
DEFAULT_MAX_LINES = 1500


class SplitterConfig(BaseSettings):
    """Settings for one classsplit run."""

    model_config = SettingsConfigDict(env_prefix='CLASSSPLIT_')

    max_lines: PositiveInt = Field(
        DEFAULT_MAX_LINES, description='Maximum number of lines per output file.'
    )

    recursive: bool = Field(
        False, description='Whether to search directories recursively.'
    )

    extensions: list[str] = Field(
        ['.cs'], description='File suffixes picked up when scanning directories.'
    )

    exclude: list[str] = Field(
        ['bin/', 'obj/', '*.Designer.cs', '*.g.cs', '*.g.i.cs'],
        description='gitignore style patterns of files that are never split.',
    )

    jobs: PositiveInt = Field(
        1, description='Number of input files processed concurrently.'
    )

    dry_run: bool = Field(
        False, description='Plan the split and report it without writing files.'
    )


def load_yaml(path: str | Path) -> dict:
    import yaml

    try:
        return yaml.load(Path(path).read_text(), Loader=yaml.FullLoader)
    except yaml.YAMLError as e:
        raise ConfigurationError(f'Invalid YAML: {e}', str(path)) from e


def load_json(path: str | Path) -> dict:
    try:
        return json.loads(Path(path).read_text())
    except json.JSONDecodeError as e:
        raise ConfigurationError(f'Invalid JSON: {e}', str(path)) from e


def _validate(data, config_path: str) -> SplitterConfig:
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigurationError('Configuration must be a mapping', config_path)
    try:
        return SplitterConfig(**data)
    except ValidationError as e:
        first = e.errors()[0]
        field = '.'.join(str(part) for part in first['loc']) or None
        raise ConfigurationError(first['msg'], config_path, field) from e


def get_config(path: str | None = None) -> SplitterConfig:
    """Load configuration from a file, or return the default config."""
    if path:
        if not Path(path).exists():
            raise ConfigurationError('Configuration file not found', path)
        if Path(path).suffix == '.json':
            return _validate(load_json(path), path)
        return _validate(load_yaml(path), path)

    cwd = os.getcwd()

    for filename in DEFAULT_FILENAMES:
        path = Path(cwd) / filename
        if path.exists():
            return _validate(load_yaml(path), str(path))

    path = Path(cwd) / 'pyproject.toml'

    if path.exists():
        import tomllib

        pyproject = tomllib.loads(path.read_text())
        tools = pyproject.get('tool', {})

        if 'classsplit' in tools:
            return _validate(tools['classsplit'], str(path))

    return SplitterConfig()
