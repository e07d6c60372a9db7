"""TidyConfig and configuration defaults.

Provides ``TidyConfig`` with the tunable ceilings of a match run and
sensible defaults.  Supports loading overrides from YAML or JSON files via
the ``from_file()`` classmethod.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field, model_validator


class BranchErrorPolicy(str, Enum):
    """What the tree builder does when one template application fails at runtime."""

    RAISE = "raise"
    SKIP = "skip"


class TidyConfig(BaseModel):
    """All tunable parameters for a match run.

    Override individual values via constructor kwargs or load a complete
    config from a file with ``TidyConfig.from_file(path)``.
    """

    # --- Identity ---
    engine_version: str = "tidykit:1.0.0"

    # --- Traversal ceilings ---
    max_tiles_per_traversal: int = Field(
        default=10_000,
        ge=1,
        description="Maximum tiles a single tiling scan may accept before E_TRAVERSAL_OVERFLOW.",
    )
    max_depth: int = Field(
        default=32,
        ge=1,
        description="Maximum template nesting depth below the root area.",
    )
    max_areas: int = Field(
        default=100_000,
        ge=1,
        description="Maximum number of matched areas in one run.",
    )

    # --- Error policy ---
    strict_root_bounds: bool = Field(
        default=False,
        description=(
            "If True, a top-level template whose start cell falls outside the "
            "grid raises E_OUT_OF_BOUNDS instead of yielding no match."
        ),
    )
    branch_error_policy: str = Field(
        default="raise",
        description="Runtime branch failures: 'raise' aborts the run, 'skip' empties the branch.",
    )

    # --- Logging / PII safety ---
    log_cell_values: bool = Field(
        default=False,
        description="If True, cell values may appear in debug logs. Default is PII-safe.",
    )

    @model_validator(mode="after")
    def _validate_enum_fields(self) -> TidyConfig:
        allowed_policies = {p.value for p in BranchErrorPolicy}
        if self.branch_error_policy not in allowed_policies:
            raise ValueError(f"branch_error_policy must be one of {allowed_policies}")
        return self

    @classmethod
    def from_file(cls, path: str) -> TidyConfig:
        """Load configuration from a YAML or JSON file.

        File format is detected by extension: ``.yaml`` / ``.yml`` for YAML,
        ``.json`` for JSON.  Any keys present in the file override the
        corresponding defaults; keys not present retain their defaults.
        """
        import json as json_mod
        import pathlib

        file_path = pathlib.Path(path)
        if not file_path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        suffix = file_path.suffix.lower()

        if suffix in (".yaml", ".yml"):
            try:
                import yaml  # type: ignore[import-untyped]
            except ImportError as exc:
                raise ImportError(
                    "pyyaml is required to load YAML config files. "
                    "Install it with: pip install pyyaml"
                ) from exc
            with open(file_path) as fh:
                data = yaml.safe_load(fh)
        elif suffix == ".json":
            with open(file_path) as fh:
                data = json_mod.load(fh)
        else:
            raise ValueError(
                f"Unsupported config file extension '{suffix}'. "
                "Use .yaml, .yml, or .json."
            )

        if data is None:
            data = {}

        return cls(**data)
