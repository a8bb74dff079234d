import json
import logging
from pathlib import Path
from typing import Any, Dict, Literal, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from mdfetch.constants import CONFIG_FILE_NAMES
from mdfetch.errors import ConfigError
from mdfetch.models.options import ConversionOptions, WaitUntil

logger = logging.getLogger(__name__)


class _Section(BaseModel):
    # snake_case and camelCase keys are both accepted
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class BrowserSection(_Section):
    executable_path: Optional[str] = None
    wait_until: Optional[WaitUntil] = None


class FetchSection(_Section):
    timeout: Optional[int] = Field(None, gt=0)
    headers: Dict[str, str] = Field(default_factory=dict)
    proxy: Optional[str] = None
    user_agent: Optional[str] = None


class ConversionSection(_Section):
    heading_style: Optional[Literal["atx", "setext"]] = None
    code_block_style: Optional[Literal["fenced", "indented"]] = None
    bullet_list_marker: Optional[Literal["-", "+", "*"]] = None

    def to_options(self) -> Optional[ConversionOptions]:
        values = self.model_dump(exclude_none=True)
        return ConversionOptions(**values) if values else None


class DefaultsSection(_Section):
    use_readability: Optional[bool] = None
    concurrent: Optional[int] = Field(None, ge=1)


class FileConfig(_Section):
    browser: BrowserSection = Field(default_factory=BrowserSection)
    fetch: FetchSection = Field(default_factory=FetchSection)
    conversion: ConversionSection = Field(default_factory=ConversionSection)
    defaults: DefaultsSection = Field(default_factory=DefaultsSection)


def _read_config_file(path: Path) -> Dict[str, Any]:
    try:
        text = path.read_text(encoding="utf-8")
        if path.suffix == ".json":
            data = json.loads(text)
        else:
            data = yaml.safe_load(text)
    except (OSError, ValueError, yaml.YAMLError) as e:
        raise ConfigError(f"Failed to read config file {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a mapping at the top level")
    return data


def find_config_file(cwd: Optional[Path] = None) -> Optional[Path]:
    cwd = cwd or Path.cwd()
    for name in CONFIG_FILE_NAMES:
        candidate = cwd / name
        if candidate.is_file():
            return candidate
    return None


def load_config(path: Optional[Union[str, Path]] = None, cwd: Optional[Path] = None) -> FileConfig:
    """
    Loads an explicit config file, or the first default one found in `cwd`.
    No file at all yields an empty FileConfig.
    """
    if path is not None:
        config_path = Path(path)
        if not config_path.is_file():
            raise ConfigError(f"Config file not found: {config_path}")
    else:
        config_path = find_config_file(cwd)
        if config_path is None:
            return FileConfig()

    logger.info(f"Using config file {config_path}")
    try:
        return FileConfig.model_validate(_read_config_file(config_path))
    except PydanticValidationError as e:
        raise ConfigError(f"Invalid config file {config_path}: {e}") from e
