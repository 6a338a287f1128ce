"""Aikforge catalogue module.

Static registry of project templates and composable validator features.

Key classes:
    Template   - A parameterized project blueprint
    Feature    - A composable security check with purpose and dependencies
    Catalogue  - Immutable index over both, with the feature dependency graph
"""

from .models import (
    Feature,
    FeatureFragment,
    Purpose,
    SdkField,
    SdkSchema,
    SdkVariant,
    Template,
    ValidatorParam,
)
from .registry import Catalogue, get_catalogue

__all__ = [
    # Registry
    "Catalogue",
    "get_catalogue",
    # Models
    "Template",
    "Feature",
    "FeatureFragment",
    "ValidatorParam",
    "Purpose",
    "SdkSchema",
    "SdkField",
    "SdkVariant",
]
