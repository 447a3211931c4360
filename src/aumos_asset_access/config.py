"""Access configuration loader with Pydantic v2 validation.

Loads and validates an ``access.yaml`` file into a typed
:class:`AccessConfig` object. Unknown keys are allowed to support future
schema additions without breakage.

Example
-------
>>> loader = ConfigLoader()
>>> config = loader.load(Path("access.yaml"))
>>> matrix = config.activate(base_dir=Path("."))
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, Field, field_validator

from aumos_asset_access.policy.defaults import default_matrix
from aumos_asset_access.policy.loader import PolicyLoader
from aumos_asset_access.policy.matrix import PolicyMatrix
from aumos_asset_access.policy.store import MatrixStore, default_store

logger = logging.getLogger(__name__)


class ExportConfig(BaseModel):
    """Settings applied by report and export jobs.

    Attributes
    ----------
    client_column:
        Column holding the owning client of exported rows.
    max_rows:
        Upper bound on the rows a single export may contain.
    """

    model_config = {"extra": "allow"}

    client_column: str = Field(default="client_id", min_length=1)
    max_rows: int = Field(default=10_000, ge=1)


class AccessConfig(BaseModel):
    """Top-level access configuration schema.

    Loaded from ``access.yaml``. All sections are optional and fall back to
    the built-in policy and defaults.
    """

    model_config = {"extra": "allow"}

    version: str = Field(default="1")
    policy_file: Path | None = Field(default=None)
    strict: bool = Field(default=False)
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(default="INFO")
    export: ExportConfig = Field(default_factory=ExportConfig)

    @field_validator("log_level", mode="before")
    @classmethod
    def normalise_log_level(cls, value: object) -> object:
        return value.upper() if isinstance(value, str) else value

    def build_matrix(self, base_dir: Path | None = None) -> PolicyMatrix:
        """Return the matrix this configuration selects.

        A relative ``policy_file`` is resolved against *base_dir* (usually
        the directory holding ``access.yaml``).

        Raises
        ------
        PolicyConfigError
            If the policy file is malformed or incomplete.
        FileNotFoundError
            If the policy file does not exist.
        """
        if self.policy_file is None:
            return default_matrix()
        path = self.policy_file
        if base_dir is not None and not path.is_absolute():
            path = base_dir / path
        return PolicyLoader(strict=self.strict).load(path)

    def configure_logging(self) -> None:
        """Set the package logger's level from ``log_level``."""
        logging.getLogger("aumos_asset_access").setLevel(self.log_level)

    def activate(
        self,
        base_dir: Path | None = None,
        store: MatrixStore | None = None,
    ) -> PolicyMatrix:
        """Apply this configuration to the running process.

        Sets the log level, builds the selected matrix and installs it in
        *store* (the process-wide store by default). Nothing is installed
        when the matrix fails to load.

        Raises
        ------
        PolicyConfigError
            If the policy file is malformed or incomplete.
        FileNotFoundError
            If the policy file does not exist.
        """
        self.configure_logging()
        matrix = self.build_matrix(base_dir)
        (store if store is not None else default_store()).swap(matrix)
        logger.info(
            "Access configuration activated (policy: %s)",
            self.policy_file or "built-in",
        )
        return matrix


class ConfigLoader:
    """Loads and validates access YAML configuration.

    Example
    -------
    >>> loader = ConfigLoader()
    >>> config = loader.load(Path("access.yaml"))
    """

    def load(self, config_path: Path) -> AccessConfig:
        """Load and validate an access YAML file.

        Raises
        ------
        FileNotFoundError:
            When the config file does not exist.
        ValueError:
            When the YAML content fails Pydantic validation.
        """
        if not config_path.exists():
            raise FileNotFoundError(f"Access config not found: {config_path}")

        with config_path.open("r", encoding="utf-8") as fh:
            raw: dict[str, object] = yaml.safe_load(fh) or {}

        return AccessConfig.model_validate(raw)

    def load_string(self, yaml_content: str) -> AccessConfig:
        """Load and validate a YAML string directly."""
        raw: dict[str, object] = yaml.safe_load(yaml_content) or {}
        return AccessConfig.model_validate(raw)

    def defaults(self) -> AccessConfig:
        """Return a default configuration with all defaults applied."""
        return AccessConfig()
