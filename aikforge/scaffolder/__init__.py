"""Aikforge scaffolder -- renders Aiken projects and TypeScript SDKs.

Takes ``GenerateOptions`` and produces a ``GeneratedProject``: an ordered
set of relative paths and file contents. Nothing is written to disk unless
the caller asks for it.

Quick usage::

    from aikforge.scaffolder import GenerateOptions, ProjectGenerator

    options = GenerateOptions(template="vesting", namespace="myorg", project_name="my_vesting")
    project = ProjectGenerator().render(options)
    project.write("./my_vesting")
"""

from .composer import ComposedValidator, compose, merge_imports
from .generator import ProjectGenerator, build_custom_spec
from .models import GeneratedFile, GeneratedProject, GenerateOptions
from .sdk_gen import build_sdk_context
from .templates import TemplateRenderer

__all__ = [
    "ProjectGenerator",
    "TemplateRenderer",
    "GenerateOptions",
    "GeneratedFile",
    "GeneratedProject",
    "build_custom_spec",
    "build_sdk_context",
    "compose",
    "merge_imports",
    "ComposedValidator",
]
