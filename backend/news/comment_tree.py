"""
Comment Tree Builder
====================

Turns the flat, oldest-first comment list served by
``GET /api/comments/<slug>`` into a nested reply tree, and provides the
local mutation helpers a client uses to fold create/edit/vote/delete
results into an already-built tree without re-fetching.

Nodes are plain dicts in the serialized comment shape (``id``,
``parentId``, ``createdAt``, ``content``, ``likes``, ...). Every node in a
built tree carries a ``replies`` list holding exactly its direct children.

All functions are pure: input lists and dicts are never mutated, a new
tree is returned.

Ordering:
    - roots are newest-first by ``createdAt``
    - replies keep delivery order (oldest-first from the fetch query)

Orphans:
    A comment whose ``parentId`` does not resolve (parent deleted, partial
    fetch) is promoted to a root instead of being dropped. So is a comment
    whose parent chain loops back to itself (corrupt data); every comment
    in the input appears exactly once in the tree.
"""

from datetime import datetime
from typing import Any, Iterator, Optional

from django.utils.dateparse import parse_datetime

ID_KEY = 'id'
PARENT_KEY = 'parentId'
CREATED_KEY = 'createdAt'
REPLIES_KEY = 'replies'

# Fields a tree update is allowed to touch
MUTABLE_FIELDS = ('content', 'likes', 'dislikes', 'updatedAt')

Node = dict[str, Any]


def _timestamp(node: Node) -> datetime:
    value = node.get(CREATED_KEY)
    if isinstance(value, datetime):
        return value
    if isinstance(value, str):
        parsed = parse_datetime(value)
        if parsed is not None:
            return parsed
    raise ValueError(f"Comment {node.get(ID_KEY)!r} has no usable {CREATED_KEY}")


def _new_node(comment: Node) -> Node:
    node = dict(comment)
    node[REPLIES_KEY] = []
    return node


def _loops_back(comment_id: Any, parents: dict) -> bool:
    """True if following parentId links from ``comment_id`` returns to it."""
    seen = set()
    current = parents.get(comment_id)
    while current is not None and current in parents and current not in seen:
        if current == comment_id:
            return True
        seen.add(current)
        current = parents[current]
    return False


def build_comment_tree(flat_comments: list[Node]) -> list[Node]:
    """
    Build nested tree structure from a flat list.

    Algorithm: two passes over the list with an id -> node map.

    Example Input (flat, oldest-first):
        [{'id': 1, 'parentId': None}, {'id': 2, 'parentId': None},
         {'id': 3, 'parentId': 1}]

    Example Output (roots newest-first):
        [{'id': 2, 'replies': []},
         {'id': 1, 'replies': [{'id': 3, 'replies': []}]}]
    """
    nodes = {}
    parents = {}
    for comment in flat_comments:
        nodes[comment[ID_KEY]] = _new_node(comment)
        parents[comment[ID_KEY]] = comment.get(PARENT_KEY)

    root_nodes = []
    for comment in flat_comments:
        node = nodes[comment[ID_KEY]]
        parent_id = comment.get(PARENT_KEY)
        parent_node = nodes.get(parent_id) if parent_id is not None else None
        if parent_node is not None and not _loops_back(comment[ID_KEY], parents):
            parent_node[REPLIES_KEY].append(node)
        else:
            # Top-level comment, orphan whose parent is not in the list,
            # or member of a parentId cycle
            root_nodes.append(node)

    root_nodes.sort(key=_timestamp, reverse=True)
    return root_nodes


def add_comment_to_tree(tree: list[Node], comment: Node, parent_id: Optional[Any] = None) -> list[Node]:
    """
    Insert a freshly created comment.

    Root comments are prepended (they are the newest). Replies are appended
    to their parent's replies. If the parent is not in the tree the tree is
    returned unchanged.
    """
    if parent_id is None:
        return [_new_node(comment)] + list(tree)

    result = []
    for node in tree:
        if node[ID_KEY] == parent_id:
            node = {**node, REPLIES_KEY: list(node.get(REPLIES_KEY, [])) + [_new_node(comment)]}
        elif node.get(REPLIES_KEY):
            node = {**node, REPLIES_KEY: add_comment_to_tree(node[REPLIES_KEY], comment, parent_id)}
        result.append(node)
    return result


def update_comment_in_tree(tree: list[Node], comment_id: Any, changes: Node) -> list[Node]:
    """
    Patch one node's mutable fields (content, counters, updatedAt).

    Keys outside MUTABLE_FIELDS and ``None`` values are ignored, so a full
    server response can be passed as ``changes`` without clobbering the
    node's position or replies.
    """
    patch = {
        key: value for key, value in changes.items()
        if key in MUTABLE_FIELDS and value is not None
    }

    result = []
    for node in tree:
        if node[ID_KEY] == comment_id:
            node = {**node, **patch}
        elif node.get(REPLIES_KEY):
            node = {**node, REPLIES_KEY: update_comment_in_tree(node[REPLIES_KEY], comment_id, changes)}
        result.append(node)
    return result


def remove_comment_from_tree(tree: list[Node], comment_id: Any) -> list[Node]:
    """Remove one node and its whole subtree."""
    result = []
    for node in tree:
        if node[ID_KEY] == comment_id:
            continue
        if node.get(REPLIES_KEY):
            node = {**node, REPLIES_KEY: remove_comment_from_tree(node[REPLIES_KEY], comment_id)}
        result.append(node)
    return result


def iter_comments(tree: list[Node]) -> Iterator[Node]:
    """Depth-first, pre-order walk over every node in the tree."""
    for node in tree:
        yield node
        yield from iter_comments(node.get(REPLIES_KEY, []))


def count_comments(tree: list[Node]) -> int:
    return sum(1 for _ in iter_comments(tree))
