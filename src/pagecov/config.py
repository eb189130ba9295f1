"""Handles the coverage options and the parsing of the PageCov configuration file."""

import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from pagecov.collector import DEFAULT_SETTLE_TIMEOUT

logger = logging.getLogger(__name__)


class CSSCoverageOptions(BaseModel):
    """Options for a CSS coverage run."""

    model_config = ConfigDict(populate_by_name=True, extra="forbid", frozen=True)

    reset_on_navigation: bool = Field(
        default=True,
        alias="resetOnNavigation",
        description="Drop the stylesheets collected so far whenever the page navigates.",
    )


class JSCoverageOptions(BaseModel):
    """Options for a JavaScript coverage run."""

    model_config = ConfigDict(populate_by_name=True, extra="forbid", frozen=True)

    reset_on_navigation: bool = Field(
        default=True,
        alias="resetOnNavigation",
        description="Drop the scripts collected so far whenever the page navigates.",
    )
    report_anonymous_scripts: bool = Field(
        default=False,
        alias="reportAnonymousScripts",
        description="Report scripts without a URL under a synthetic 'debugger://VM<id>' URL.",
    )


class CoverageConfig(BaseModel):
    """The root configuration for PageCov."""

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    js: JSCoverageOptions = Field(default_factory=JSCoverageOptions)
    css: CSSCoverageOptions = Field(default_factory=CSSCoverageOptions)
    settle_timeout: float = Field(
        default=DEFAULT_SETTLE_TIMEOUT,
        ge=0,
        alias="settleTimeout",
        description="Seconds to wait for resource text fetches still in flight when coverage stops.",
    )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CoverageConfig":
        """
        Create a CoverageConfig object from a dictionary.

        Missing or empty sections fall back to their defaults.

        Raises:
            ValueError: If the data holds unknown keys or values of the wrong type.

        """
        sections = {key: value for key, value in data.items() if value is not None}
        try:
            return cls.model_validate(sections)
        except ValidationError as e:
            msg = f"Invalid or missing configuration: {e}"
            raise ValueError(msg) from e


def resolve_options(options: BaseModel | None, model: type[BaseModel], overrides: dict[str, Any]) -> Any:  # noqa: ANN401
    """
    Merge keyword overrides into an options model.

    Args:
        options: Base options, or None to start from the defaults.
        model: The options model class.
        overrides: Keyword overrides; None values are ignored.

    Returns:
        A validated instance of `model`.

    Raises:
        ValueError: If an override is unknown or has the wrong type.

    """
    base = options.model_dump() if options is not None else {}
    base.update({key: value for key, value in overrides.items() if value is not None})
    try:
        return model.model_validate(base)
    except ValidationError as e:
        msg = f"Invalid coverage options: {e}"
        raise ValueError(msg) from e


def load_config(config_path: str | Path) -> CoverageConfig:
    """
    Load, parse, and validate the YAML configuration file.

    Args:
        config_path: The path to the configuration file.

    Returns:
        A CoverageConfig object representing the validated configuration.

    Raises:
        FileNotFoundError: If the config file does not exist.
        yaml.YAMLError: If there is a syntax error in the YAML file.
        ValueError: If the configuration is invalid.

    """
    path = Path(config_path)
    if not path.is_file():
        msg = f"Configuration file not found at: {config_path}"
        raise FileNotFoundError(msg)

    try:
        with path.open(encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        msg = f"Error parsing YAML config file: {e}"
        raise yaml.YAMLError(msg) from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        msg = "Invalid or missing configuration: config file must be a YAML mapping (dictionary)."
        raise ValueError(msg)

    config = CoverageConfig.from_dict(data)
    logger.debug("Loaded coverage configuration from %s: %s", path, config)
    return config
