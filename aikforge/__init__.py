"""Aikforge -- Aiken smart-contract starter-project generator.

Renders Aiken projects from a catalogue of templates or from a custom
datum/redeemer description with composable security features, and verifies
every project by compiling it, running its inline tests and scanning it.

Key classes:
    Pipeline          - Public operations (list, validate, generate, verify)
    GenerateOptions   - One generation request
    GeneratedProject  - Rendered files
    VerificationReport - Outcome of compile -> test -> scan
    Config            - Manifest values, tool commands and policy
"""

from .config import Config, ManifestConfig, ToolConfig, VerifyConfig
from .errors import ForgeError
from .pipeline import GenerationResult, Pipeline, ValidationResult
from .scaffolder.models import GeneratedFile, GeneratedProject, GenerateOptions
from .tester.results import VerificationReport

__version__ = "0.1.0"

__all__ = [
    # Orchestrator
    "Pipeline",
    "GenerationResult",
    "ValidationResult",
    # Requests and outputs
    "GenerateOptions",
    "GeneratedFile",
    "GeneratedProject",
    "VerificationReport",
    # Configuration
    "Config",
    "ManifestConfig",
    "VerifyConfig",
    "ToolConfig",
    # Errors
    "ForgeError",
]
