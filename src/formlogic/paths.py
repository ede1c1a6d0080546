"""
Field Addressing for formlogic

Every field in a schema tree is identified by a qualified address:
the dot-joined names of its ancestor groups followed by its own name.

    group "contact" > group "address" > field "zip"   ->   "contact.address.zip"

The same address locates the field's value in the nested value tree,
its error in the store, and any visibility condition that targets it.

ARCHITECTURAL RULE:
    Resolution never raises.
    A missing segment anywhere along the path yields ABSENT.
"""

from typing import Any, List, Mapping, MutableMapping, Optional


class _Absent:
    """
    Sentinel for "no value stored at this address".

    Distinct from None: a field explicitly set to None holds a value,
    a field that was never written does not.
    """

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "ABSENT"

    def __copy__(self):
        return self

    def __deepcopy__(self, memo):
        return self

    def __reduce__(self):
        return (_Absent, ())


ABSENT = _Absent()


def qualify(parent: Optional[str], name: str) -> str:
    """
    Build a child's qualified address.

    Args:
        parent: Qualified address of the enclosing group (or None at top level)
        name: The child's own name

    Returns:
        "parent.name", or just "name" when there is no parent
    """
    if parent:
        return f"{parent}.{name}"
    return name


def split(address: str) -> List[str]:
    return address.split(".")


def is_descendant(address: str, ancestor: str) -> bool:
    """True when address lies strictly below ancestor."""
    return address.startswith(ancestor + ".")


def resolve(tree: Any, address: str) -> Any:
    """
    Resolve a dot-qualified address against a nested value tree.

    Mapping segments are looked up by key. Sequence segments are looked up
    by integer index when the segment is all digits.

    Args:
        tree: Root of the value tree
        address: Dot-qualified address, e.g. "contact.address.zip"

    Returns:
        The stored value, or ABSENT if any segment is missing
    """
    node = tree
    for segment in split(address):
        if isinstance(node, Mapping):
            if segment not in node:
                return ABSENT
            node = node[segment]
        elif isinstance(node, (list, tuple)) and segment.isdigit():
            index = int(segment)
            if index >= len(node):
                return ABSENT
            node = node[index]
        else:
            return ABSENT
    return node


def assign(tree: MutableMapping, address: str, value: Any) -> None:
    """
    Write value at address, creating intermediate dicts as needed.

    A non-mapping value found on the way is replaced by a dict, the same
    way a group value is rebuilt when one of its children is written.
    """
    segments = split(address)
    node = tree
    for segment in segments[:-1]:
        child = node.get(segment)
        if not isinstance(child, MutableMapping):
            child = {}
            node[segment] = child
        node = child
    node[segments[-1]] = value
