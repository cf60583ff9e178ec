"""
Tree view over the flat categories table.

Categories are stored as a parent-pointer adjacency list; the nested view is
rebuilt on read (one pass to index by id, one pass to link children).
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, Optional

from sqlalchemy.orm import Session

from dashboard.models.category import Category


@dataclass
class CategoryNode:
    id: int
    name: str
    parent_id: Optional[int]
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    children: list["CategoryNode"] = field(default_factory=list)


def _sort_key(node: CategoryNode):
    return (node.name, node.id)


def build_tree(categories: Iterable) -> list[CategoryNode]:
    """
    Link a flat iterable of category rows into root nodes with nested children.

    Siblings are ordered by name, then id. A node whose parent is missing from
    the input is dropped from the tree (it is neither a root nor reachable).
    """
    nodes: dict[int, CategoryNode] = {}
    for cat in categories:
        nodes[cat.id] = CategoryNode(
            id=cat.id,
            name=cat.name,
            parent_id=cat.parent_id,
            created_at=getattr(cat, "created_at", None),
            updated_at=getattr(cat, "updated_at", None),
        )

    roots: list[CategoryNode] = []
    for node in nodes.values():
        if node.parent_id is None:
            roots.append(node)
            continue
        parent = nodes.get(node.parent_id)
        if parent is not None:
            parent.children.append(node)

    for node in nodes.values():
        node.children.sort(key=_sort_key)
    roots.sort(key=_sort_key)
    return roots


def get_category_tree(db: Session) -> list[CategoryNode]:
    return build_tree(db.query(Category).all())


def get_path(db: Session, category_id: int) -> list[Category]:
    """
    Root-first ancestry of ``category_id``, the category itself included.

    A missing category ends the walk, so a dangling reference yields a shorter
    path (or an empty one when the starting id does not exist).
    """
    path: list[Category] = []
    seen: set[int] = set()
    current_id = category_id
    while current_id is not None and current_id not in seen:
        category = db.get(Category, current_id)
        if category is None:
            break
        seen.add(current_id)
        path.append(category)
        current_id = category.parent_id
    path.reverse()
    return path


def find_in_tree(
    tree: list[CategoryNode], target_id: int
) -> tuple[Optional[CategoryNode], list[CategoryNode]]:
    """
    Depth-first search for ``target_id``.

    Returns the matched node and its root-first chain (node included), or
    ``(None, [])`` when the id is not in the tree.
    """
    stack: list[tuple[CategoryNode, list[CategoryNode]]] = [
        (root, [root]) for root in reversed(tree)
    ]
    while stack:
        node, chain = stack.pop()
        if node.id == target_id:
            return node, chain
        for child in reversed(node.children):
            stack.append((child, chain + [child]))
    return None, []


def iter_tree(tree: list[CategoryNode], depth: int = 1):
    """Yield ``(node, depth)`` pairs in pre-order, roots at depth 1."""
    for node in tree:
        yield node, depth
        yield from iter_tree(node.children, depth + 1)
