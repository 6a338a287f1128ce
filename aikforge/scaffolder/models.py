"""Request and output models for project rendering."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ..catalogue.models import Purpose
from ..errors import PathCollisionError
from ..parser.spec_parser import parse_feature_list
from ..utils import write_project

IDENTIFIER_RE = re.compile(r"[a-z][a-z0-9_]*")

# Template-specific toggles and the value that means "not set".
TOGGLE_DEFAULTS: dict[str, Any] = {
    "token_name": None,
    "asset_name": None,
    "time_lock": False,
    "cancellable": False,
    "partial_claim": False,
    "purpose": None,
    "features": [],
    "datum": "",
    "redeemer": "",
}


# ---------------------------------------------------------------------------
# Request
# ---------------------------------------------------------------------------

class GenerateOptions(BaseModel):
    """Everything needed to render one project.

    ``namespace`` and ``project_name`` are checked by
    :meth:`identifier_errors` rather than by pydantic so that callers can
    collect every problem at once.
    """

    template: str = Field(..., description="Template slug or alias")
    namespace: str = Field(..., description="Organisation namespace, e.g. 'myorg'")
    project_name: str = Field(..., description="Project / module name, e.g. 'my_vesting'")
    description: Optional[str] = Field(default=None)

    # simple_mint
    token_name: Optional[str] = Field(default=None)
    asset_name: Optional[str] = Field(default=None)
    time_lock: bool = Field(default=False)

    # vesting
    cancellable: bool = Field(default=False)
    partial_claim: bool = Field(default=False)

    # custom
    purpose: Optional[Purpose] = Field(default=None)
    features: list[str] = Field(default_factory=list)
    datum: str = Field(default="", description="Field DSL, e.g. 'owner:ByteArray,deadline:Int'")
    redeemer: str = Field(default="", description="Action DSL, e.g. 'Claim,Withdraw(amount:Int)'")

    # delivery
    sdk: bool = Field(default=False, description="Also render the TypeScript SDK")
    skip_verify: bool = Field(default=False)
    scan_profile: bool = Field(default=False, description="Emit a .aikido.toml scanner profile")

    @field_validator("features", mode="before")
    @classmethod
    def _split_features(cls, value: Any) -> list[str]:
        return parse_feature_list(value)

    def identifier_errors(self) -> list[str]:
        """Messages for every namespace / project-name rule that is broken."""
        errors: list[str] = []
        for label, value in (("namespace", self.namespace), ("project_name", self.project_name)):
            if not value:
                errors.append(f"{label} must not be empty")
            elif not IDENTIFIER_RE.fullmatch(value):
                errors.append(
                    f"{label} {value!r} must match [a-z][a-z0-9_]* "
                    "(lowercase letters, digits and underscores)"
                )
        return errors

    def set_toggles(self) -> list[str]:
        """Names of template-specific toggles that differ from their defaults."""
        return [name for name, default in TOGGLE_DEFAULTS.items() if getattr(self, name) != default]

    @property
    def effective_purpose(self) -> Purpose:
        return self.purpose or Purpose.SPEND


# ---------------------------------------------------------------------------
# Output
# ---------------------------------------------------------------------------

class GeneratedFile(BaseModel):
    """One rendered file. ``path`` is relative and forward-slash separated."""
    model_config = ConfigDict(frozen=True)

    path: str
    content: str

    @field_validator("path")
    @classmethod
    def _check_path(cls, value: str) -> str:
        if not value or value.startswith("/") or "\\" in value:
            raise ValueError(f"path must be relative and use '/': {value!r}")
        segments = value.split("/")
        if any(seg in ("", ".", "..") for seg in segments):
            raise ValueError(f"path contains an empty, '.' or '..' segment: {value!r}")
        return value


class GeneratedProject(BaseModel):
    """An ordered set of files with unique paths."""

    template: str
    files: list[GeneratedFile] = Field(default_factory=list)

    @model_validator(mode="after")
    def _unique_paths(self) -> "GeneratedProject":
        seen: set[str] = set()
        for generated in self.files:
            if generated.path in seen:
                raise PathCollisionError(generated.path)
            seen.add(generated.path)
        return self

    @property
    def paths(self) -> list[str]:
        return [f.path for f in self.files]

    def file(self, path: str) -> GeneratedFile:
        """Return the file at *path*; ``KeyError`` if absent."""
        for generated in self.files:
            if generated.path == path:
                return generated
        raise KeyError(path)

    def validators(self) -> list[GeneratedFile]:
        return [f for f in self.files if f.path.startswith("validators/")]

    def as_dict(self) -> dict[str, str]:
        return {f.path: f.content for f in self.files}

    def write(self, output_dir: str | Path) -> list[Path]:
        """Write the project to disk (see ``utils.write_project``)."""
        return write_project(self, output_dir)
