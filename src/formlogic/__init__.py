"""
formlogic - Headless Form Schema Engine

Interprets a declarative form schema and keeps the set of rendered fields
consistent with live form state.

ARCHITECTURAL GUARANTEE:
------------------------
This package contains ZERO knowledge of:
    - Widget drawing or styling
    - DOM / layout concerns
    - Network I/O
    - How form values are stored

This package defines FORM BEHAVIOR only:
    - Nested field addressing
    - Visibility rules
    - Clear/preserve decisions for hidden values
    - Dispatch by field type
    - Debounced and dependency-triggered side effects

The value tree is owned by an external store (see formlogic.store).
"""

from formlogic.paths import ABSENT, qualify, resolve
from formlogic.model import FieldSchema, FieldType, FormSchema, Option, ValidationRules, RuleSpec
from formlogic.expressions import Condition, ConditionOperator, LogicOperator, VisibilityRule
from formlogic.store import FormStore, InMemoryFormStore, FieldError
from formlogic.analyzer import SchemaReport, SchemaValidationError, analyze_schema, validate_schema
from formlogic.engine import FormEngine, RenderNode
from formlogic.wizard import FormWizard, WizardStep
from formlogic.config import EngineConfig, load_config

__version__ = "0.1.0"

__all__ = [
    "ABSENT",
    "qualify",
    "resolve",
    "FieldSchema",
    "FieldType",
    "FormSchema",
    "Option",
    "ValidationRules",
    "RuleSpec",
    "Condition",
    "ConditionOperator",
    "LogicOperator",
    "VisibilityRule",
    "FormStore",
    "InMemoryFormStore",
    "FieldError",
    "SchemaReport",
    "SchemaValidationError",
    "analyze_schema",
    "validate_schema",
    "FormEngine",
    "RenderNode",
    "FormWizard",
    "WizardStep",
    "EngineConfig",
    "load_config",
]
