"""Build nested category trees from flat, parent-referencing records.

The hierarchy is taken from each record's ``parent_id`` only. Any
denormalized child list on the record (``subcategory_ids`` on the ORM model,
``subcategories`` on plain dicts) is ignored and replaced by the nested
children in the output.

Records may be ORM ``Category`` instances, any object exposing the same
attributes, or mappings using either snake_case or camelCase keys.
"""

from collections import defaultdict
from collections.abc import Mapping
from typing import Any, Dict, Iterable, List, Optional

from partsmarket.schemas.category import CategoryTreeNode


def normalize_parent_id(value: Any) -> Optional[str]:
    """Return the comparable form of a parent reference.

    ``None`` and empty values mean "no parent". Everything else is compared
    as a string so that a UUID and its text form refer to the same node.
    """
    if value is None or value == "":
        return None
    return str(value)


def _get(record: Any, name: str, alias: Optional[str] = None) -> Any:
    if isinstance(record, Mapping):
        if name in record:
            return record[name]
        return record.get(alias) if alias else None
    return getattr(record, name, None)


def _to_node(record: Any) -> CategoryTreeNode:
    if isinstance(record, Mapping):
        data = {k: v for k, v in record.items() if k not in ("subcategories", "subcategory_ids", "subcategoryIds")}
        return CategoryTreeNode.model_validate(data)
    return CategoryTreeNode.model_validate(record)


def index_by_parent(records: Iterable[Any]) -> Dict[Optional[str], List[Any]]:
    """Group records by normalized parent id, keeping input order."""
    children: Dict[Optional[str], List[Any]] = defaultdict(list)
    for record in records:
        parent_key = normalize_parent_id(_get(record, "parent_id", "parentId"))
        children[parent_key].append(record)
    return children


def build_category_tree(records: Iterable[Any], root_parent_id: Any = None) -> List[CategoryTreeNode]:
    """Turn a flat list of categories into a forest rooted at ``root_parent_id``.

    Siblings keep the order they had in ``records``. Records whose parent is
    not part of ``records`` are never reached and are left out silently, as
    are records caught in a parent cycle.

    Args:
        records: Flat category records
        root_parent_id: Parent id whose children become the roots
            (``None`` for top-level categories)

    Returns:
        List of CategoryTreeNode with ``subcategories`` filled recursively
    """
    children = index_by_parent(records)
    seen: set = set()

    def build(parent_key: Optional[str]) -> List[CategoryTreeNode]:
        nodes = []
        for record in children.get(parent_key, []):
            record_key = normalize_parent_id(_get(record, "id"))
            if record_key in seen:
                continue
            seen.add(record_key)

            node = _to_node(record)
            node.subcategories = build(record_key)
            nodes.append(node)
        return nodes

    return build(normalize_parent_id(root_parent_id))
