"""YAML-based loader for access policy matrices.

PolicyLoader reads YAML matrix files and builds PolicyMatrix instances.
The resulting matrix must be total, so a file that forgets a
(role, resource) pair fails to load instead of silently denying.

Schema
------
::

    version: "1.0"
    rules:
      - role: "admin"
        resource: "licenses"
        actions: ["*"]
        scope: "all"
      - role: "client"
        resource: "licenses"
        actions: ["read"]
        scope: "own_client"
      - role: "client"
        resource: "clients"
        actions: []
        scope: "own_client"
      # ... one entry per (role, resource) pair

Example
-------
::

    loader = PolicyLoader()
    matrix = loader.load("/etc/asset-access/policy.yaml")
    rule = matrix.lookup(Role.CLIENT, Resource.LICENSES)
"""
from __future__ import annotations

import logging
from pathlib import Path

import yaml

from aumos_asset_access.policy.matrix import MatrixError, PolicyMatrix
from aumos_asset_access.policy.rules import PolicyRule

logger = logging.getLogger(__name__)

_SUPPORTED_VERSIONS: frozenset[str] = frozenset(["1.0", "1"])


class PolicyConfigError(ValueError):
    """Raised when a policy matrix config is malformed or incomplete.

    Attributes
    ----------
    config_path:
        The path to the config file that caused the error, if known.
    """

    def __init__(self, message: str, config_path: str | None = None) -> None:
        self.config_path = config_path
        prefix = f"[{config_path}] " if config_path else ""
        super().__init__(f"{prefix}{message}")


class PolicyLoader:
    """Loads PolicyMatrix configurations from YAML files or dicts.

    Parameters
    ----------
    strict:
        When ``True``, unknown top-level keys and unknown rule keys are
        treated as errors. Default ``False`` (unknown keys are ignored).
    """

    _KNOWN_TOP_KEYS: frozenset[str] = frozenset(
        ["version", "rules", "metadata", "description"]
    )
    _KNOWN_RULE_KEYS: frozenset[str] = frozenset(
        ["role", "resource", "actions", "scope", "description"]
    )

    def __init__(self, strict: bool = False) -> None:
        self._strict = strict

    def load(self, config_path: str | Path) -> PolicyMatrix:
        """Load a PolicyMatrix from a YAML file on disk.

        Raises
        ------
        PolicyConfigError
            If the file cannot be parsed or is structurally invalid.
        FileNotFoundError
            If the config file does not exist.
        """
        config_path = Path(config_path)
        if not config_path.exists():
            raise FileNotFoundError(f"Policy config not found: {config_path}")

        try:
            with config_path.open("r", encoding="utf-8") as fh:
                raw: dict[str, object] = yaml.safe_load(fh) or {}
        except yaml.YAMLError as exc:
            raise PolicyConfigError(
                f"Failed to parse YAML: {exc}", str(config_path)
            ) from exc

        return self._build_matrix(raw, config_path=str(config_path))

    def load_from_dict(
        self,
        config: dict[str, object],
        config_path: str | None = None,
    ) -> PolicyMatrix:
        """Load a PolicyMatrix from an already-parsed config dictionary."""
        return self._build_matrix(config, config_path=config_path)

    def load_from_yaml_string(
        self,
        yaml_string: str,
        config_path: str | None = None,
    ) -> PolicyMatrix:
        """Load a PolicyMatrix from a YAML string."""
        try:
            raw: dict[str, object] = yaml.safe_load(yaml_string) or {}
        except yaml.YAMLError as exc:
            raise PolicyConfigError(
                f"Failed to parse YAML string: {exc}", config_path
            ) from exc
        return self._build_matrix(raw, config_path=config_path)

    @staticmethod
    def dump(matrix: PolicyMatrix, output_path: str | Path) -> Path:
        """Write *matrix* to *output_path* in the loader's YAML schema."""
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        with output_path.open("w", encoding="utf-8") as fh:
            yaml.safe_dump(matrix.to_dict(), fh, default_flow_style=False, sort_keys=False)
        return output_path

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _build_matrix(
        self,
        raw: dict[str, object],
        config_path: str | None = None,
    ) -> PolicyMatrix:
        """Validate and build a PolicyMatrix from a raw config dict."""
        self._validate_structure(raw, config_path)

        version = str(raw.get("version", "1.0"))
        if version not in _SUPPORTED_VERSIONS:
            raise PolicyConfigError(
                f"Unsupported config version {version!r}. "
                f"Supported: {sorted(_SUPPORTED_VERSIONS)}.",
                config_path,
            )

        raw_rules: list[object] = list(raw["rules"])  # type: ignore[call-overload]
        rules: list[PolicyRule] = []
        for index, raw_rule in enumerate(raw_rules):
            if not isinstance(raw_rule, dict):
                raise PolicyConfigError(
                    f"Rule at index {index} must be a mapping; got {raw_rule!r}.",
                    config_path,
                )
            if self._strict:
                unknown = set(raw_rule.keys()) - self._KNOWN_RULE_KEYS
                if unknown:
                    raise PolicyConfigError(
                        f"Unknown keys in rule at index {index}: {sorted(unknown)}.",
                        config_path,
                    )
            try:
                rules.append(PolicyRule.from_dict(raw_rule))
            except (ValueError, KeyError, TypeError) as exc:
                raise PolicyConfigError(
                    f"Error in rule at index {index}: {exc}",
                    config_path,
                ) from exc

        try:
            matrix = PolicyMatrix(rules)
        except MatrixError as exc:
            raise PolicyConfigError(str(exc), config_path) from exc

        logger.info(
            "Loaded %d policy rules from %s",
            len(matrix),
            config_path or "<dict>",
        )
        return matrix

    def _validate_structure(
        self,
        raw: dict[str, object],
        config_path: str | None,
    ) -> None:
        """Validate top-level structure of the config dict."""
        if not isinstance(raw, dict):
            raise PolicyConfigError(
                "Policy config must be a YAML mapping (dict).", config_path
            )

        if "rules" not in raw:
            raise PolicyConfigError(
                "Policy config must contain a 'rules' list.", config_path
            )

        if not isinstance(raw["rules"], list):
            raise PolicyConfigError(
                "Policy config 'rules' must be a list.", config_path
            )

        if self._strict:
            unknown_keys = set(raw.keys()) - self._KNOWN_TOP_KEYS
            if unknown_keys:
                raise PolicyConfigError(
                    f"Unknown top-level keys: {sorted(unknown_keys)}. "
                    f"Known keys: {sorted(self._KNOWN_TOP_KEYS)}.",
                    config_path,
                )
