#!/usr/bin/env python3
"""
Complete Pipeline Demo: YAML schema → Analysis → Rendering → Edits

Shows the full workflow:
1. Load a form schema from YAML
2. Analyze it
3. Render the visible fields
4. Apply edits and watch fields appear, clear and load options
"""

import asyncio
import logging

from formlogic.analyzer import analyze_schema
from formlogic.engine import FormEngine
from formlogic.examples import lookup_states
from formlogic.serialization import schema_from_yaml
from formlogic.store import InMemoryFormStore

SCHEMA_YAML = """
name: Shipping
fields:
  - name: country
    type: select
    label: Country
    required: true
    options:
      - {label: United States, value: US}
      - {label: Canada, value: CA}
  - name: state
    type: select
    label: State
    dependsOn: country
    visibleWhen:
      conditions:
        - {field: country, operator: exists}
  - name: gift
    type: group
    label: Gift options
    children:
      - {name: wrap, type: checkbox, label: Gift wrap}
  - name: message
    type: textarea
    label: Gift message
    showWordCount: true
    visibleWhen:
      conditions:
        - {field: gift.wrap, operator: equals, value: true}
"""


def print_tree(nodes, indent="   "):
    for node in nodes:
        widget = node.widget
        value = widget.value if widget is not None else node.output
        extra = ""
        if widget is not None and widget.options:
            extra = f" options={[o.value for o in widget.options]}"
        if widget is not None and widget.loading:
            extra += " (loading)"
        print(f"{indent}{node.address} [{node.kind.value}] = {value!r}{extra}")
        print_tree(node.children, indent + "   ")


async def fetch_states(country):
    await asyncio.sleep(0.2)
    return lookup_states(country)


async def main():
    print("=" * 80)
    print("FORM ENGINE DEMO: YAML → Analysis → Rendering → Edits")
    print("=" * 80)

    # =========================================================================
    # STEP 1: Load schema
    # =========================================================================
    print("\n1. LOADING SCHEMA...")
    schema = schema_from_yaml(SCHEMA_YAML)
    schema.get_field("state").get_options = fetch_states
    print(f"   ✓ Loaded form: {schema.name}")

    # =========================================================================
    # STEP 2: Analyze
    # =========================================================================
    print("\n2. ANALYZING SCHEMA...")
    report = analyze_schema(schema)
    print(f"   ✓ Fields: {report.total_fields} ({report.total_groups} group)")
    print(f"   ✓ Conditional fields: {report.conditional_fields}")
    print(f"   ✓ Visibility graph: {report.visibility_graph}")
    for warning in report.warnings:
        print(f"      - {warning}")

    # =========================================================================
    # STEP 3: Render
    # =========================================================================
    print("\n3. INITIAL RENDER:")
    store = InMemoryFormStore.from_schema(schema)
    engine = FormEngine(schema, store, on_update=lambda address: print(f"   ↻ update from {address}"))
    print_tree(engine.render())

    # =========================================================================
    # STEP 4: Edits
    # =========================================================================
    print("\n4. country = US")
    print_tree(engine.change("country", "US"))
    print_tree(await engine.settle())

    print("\n5. gift.wrap = True, message typed")
    engine.change("gift.wrap", True)
    print_tree(engine.change("message", "Happy birthday Sam"))

    print("\n6. gift.wrap = False (message is cleared)")
    print_tree(engine.change("gift.wrap", False))
    print(f"   store: {store.watch_all()}")

    engine.close()
    print("\n" + "=" * 80)


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    asyncio.run(main())
