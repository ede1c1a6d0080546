"""
Schema Analyzer - load-time checks and inventory of form schemas.

This module provides lightweight analysis of schema trees:
    - Address inventory
    - Structural invariants (unique sibling names, children only on groups)
    - Visibility dependency graph and cycle detection
    - Warning flags for authoring mistakes

IMPORTANT: Analysis never modifies the schema. validate_schema() is run
once per schema load by FormEngine; it raises on structural errors and
logs warnings.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Set, Union

from formlogic.expressions import ConditionOperator, LogicOperator
from formlogic.model import SELECTION_TYPES, FieldSchema, FieldType, FormSchema, as_field_list
from formlogic.paths import is_descendant, qualify

logger = logging.getLogger(__name__)


class SchemaValidationError(ValueError):
    """Raised when a schema violates a structural invariant."""

    def __init__(self, errors: List[str]):
        self.errors = list(errors)
        super().__init__("Invalid form schema: " + "; ".join(self.errors))


def _find_cycles_dfs(graph: Dict[str, List[str]], start: str, visited: Set[str],
                     rec_stack: Set[str], path: List[str]) -> Optional[List[str]]:
    """DFS to find a cycle starting from a node."""
    visited.add(start)
    rec_stack.add(start)
    path.append(start)

    for neighbor in graph.get(start, []):
        if neighbor not in visited:
            cycle = _find_cycles_dfs(graph, neighbor, visited, rec_stack, path[:])
            if cycle:
                return cycle
        elif neighbor in rec_stack:
            cycle_start_idx = path.index(neighbor)
            return path[cycle_start_idx:] + [neighbor]

    rec_stack.remove(start)
    return None


@dataclass
class SchemaReport:
    """Analysis report for a schema tree."""

    total_fields: int = 0
    total_groups: int = 0
    conditional_fields: int = 0
    dependent_fields: int = 0
    addresses: List[str] = field(default_factory=list)

    # address -> addresses whose values (or visibility) its visibility reads
    visibility_graph: Dict[str, List[str]] = field(default_factory=dict)
    has_cycles: bool = False
    cycle_example: Optional[List[str]] = None

    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    def add_error(self, msg: str) -> None:
        self.errors.append(msg)

    def add_warning(self, msg: str) -> None:
        self.warnings.append(msg)

    @property
    def ok(self) -> bool:
        return not self.errors


def _ancestors(address: str) -> List[str]:
    parts = address.split(".")
    return [".".join(parts[:i]) for i in range(1, len(parts))]


def analyze_schema(schema: Union[FormSchema, Sequence[FieldSchema]]) -> SchemaReport:
    """
    Analyze a schema tree.

    Args:
        schema: FormSchema or list of top-level FieldSchemas

    Returns:
        SchemaReport with inventory, errors and warnings
    """
    report = SchemaReport()
    seen_addresses: Set[str] = set()
    nodes: Dict[str, FieldSchema] = {}

    # =========================================================================
    # 1. STRUCTURE
    # =========================================================================

    def visit(fields: Sequence[FieldSchema], parent: Optional[str]) -> None:
        sibling_names: Set[str] = set()
        for node in fields:
            if not node.name:
                report.add_error(f"Field without a name under {parent or '<root>'}")
                continue
            if node.name in sibling_names:
                report.add_error(f"Duplicate field name {node.name!r} under {parent or '<root>'}")
            sibling_names.add(node.name)

            address = qualify(parent, node.name)
            if address in seen_addresses:
                report.add_error(f"Address {address!r} is produced by more than one field")
            seen_addresses.add(address)
            nodes.setdefault(address, node)
            report.addresses.append(address)
            report.total_fields += 1

            if node.is_group:
                report.total_groups += 1
            elif node.children:
                report.add_error(f"Field {address!r} of type {getattr(node.type, 'value', node.type)!r} has children")

            if not isinstance(node.type, FieldType):
                report.add_warning(f"Unsupported field type {node.type!r} at {address}")

            if node.children:
                visit(node.children, address)

    visit(as_field_list(schema), None)

    # =========================================================================
    # 2. VISIBILITY RULES AND DEPENDENCIES
    # =========================================================================

    graph: Dict[str, List[str]] = defaultdict(list)

    for address, node in nodes.items():
        rule = node.visible_when
        if rule is not None and rule.conditions:
            report.conditional_fields += 1
            if not isinstance(rule.logic, LogicOperator):
                report.add_warning(f"Unknown visibility logic {rule.logic!r} at {address}; field will stay hidden")

            for condition in rule.conditions:
                target = condition.field
                if not isinstance(condition.operator, ConditionOperator):
                    report.add_warning(
                        f"Unknown visibility operator {condition.operator!r} at {address}; condition is always false"
                    )
                elif condition.operator in (ConditionOperator.IN, ConditionOperator.NOT_IN) and not isinstance(
                    condition.value, (list, tuple)
                ):
                    report.add_warning(f"Operator {condition.operator.value!r} at {address} needs a list value")

                if not isinstance(target, str) or not target:
                    report.add_warning(f"Condition without a target field at {address}")
                    continue

                if target not in nodes and not any(is_descendant(a, target) for a in nodes):
                    report.add_warning(f"Visibility of {address} references undefined field {target!r}")

                # the target's value depends on its own visibility and its ancestors'
                for dependency in [target] + _ancestors(target):
                    if dependency in nodes and dependency not in graph[address]:
                        graph[address].append(dependency)

        if node.depends_on is not None or node.get_options is not None:
            report.dependent_fields += 1
            if node.depends_on is not None and node.depends_on not in nodes:
                report.add_warning(f"{address} depends on undefined field {node.depends_on!r}")
            if node.depends_on is not None and node.get_options is None:
                report.add_warning(f"{address} declares dependsOn without an option resolver")
            if node.get_options is not None and node.type not in SELECTION_TYPES:
                report.add_warning(f"{address} has an option resolver but is not a selection field")

    report.visibility_graph = dict(graph)

    visited: Set[str] = set()
    for address in list(graph.keys()):
        if address not in visited:
            cycle = _find_cycles_dfs(graph, address, visited, set(), [])
            if cycle:
                report.has_cycles = True
                report.cycle_example = cycle
                break

    if report.has_cycles:
        report.add_error(f"Visibility cycle detected: {' -> '.join(report.cycle_example)}")

    return report


def validate_schema(schema: Union[FormSchema, Sequence[FieldSchema]]) -> SchemaReport:
    """
    Check a schema once at load time.

    Returns:
        The SchemaReport (warnings are also logged)

    Raises:
        SchemaValidationError: If any structural error was found
    """
    report = analyze_schema(schema)
    for warning in report.warnings:
        logger.warning(warning)
    if report.errors:
        raise SchemaValidationError(report.errors)
    return report
