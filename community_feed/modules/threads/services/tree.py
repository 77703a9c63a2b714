"""
Pure operations over a comment tree.

A tree is the ordered list of top-level CommentNodes of one item; each node
owns its replies. Nothing here performs I/O or mutates its input: every
function returns a new list, and subtrees that did not change are handed back
by identity, so a reader holding the old tree never sees a half-applied edit.
When nothing changes the input list itself is returned.
"""

from typing import Any, Callable, Iterable, List, Mapping, Optional, Union

from community_feed.modules.threads.schemas.thread import Author, CommentNode

Tree = List[CommentNode]

TRANSIENT_FIELDS = ("is_editing", "is_deleting")

# Never taken from an update: identity, structure and local flags
_PROTECTED_FIELDS = {"id", "replies", "is_editing", "is_deleting"}


def _map_node(tree: Tree, node_id: str, fn: Callable[[CommentNode], CommentNode]) -> Tree:
    """Apply fn to the node with node_id wherever it sits"""
    changed = False
    result = []
    for node in tree:
        if node.id == node_id:
            new_node = fn(node)
        elif node.replies:
            replies = _map_node(node.replies, node_id, fn)
            new_node = node if replies is node.replies else node.model_copy(update={"replies": replies})
        else:
            new_node = node
        changed = changed or new_node is not node
        result.append(new_node)
    return result if changed else tree


def find_node(tree: Tree, node_id: str) -> Optional[CommentNode]:
    for node in tree:
        if node.id == node_id:
            return node
        found = find_node(node.replies, node_id)
        if found is not None:
            return found
    return None


def is_top_level(tree: Tree, node_id: str) -> bool:
    """True when node_id is one of the tree's depth-0 nodes"""
    return any(node.id == node_id for node in tree)


def count_all(tree: Tree) -> int:
    """Number of nodes at every level"""
    return sum(subtree_size(node) for node in tree)


def subtree_size(node: CommentNode) -> int:
    """The node itself plus all of its descendants"""
    return 1 + count_all(node.replies)


def insert_reply(tree: Tree, parent_id: str, new_node: CommentNode) -> Tree:
    """
    Append new_node to the replies of parent_id.

    An unknown parent_id leaves the tree unchanged; callers validate the
    parent before asking the server to create the reply.
    """
    def append(parent: CommentNode) -> CommentNode:
        return parent.model_copy(update={"replies": [*parent.replies, new_node], "has_replies": True})

    return _map_node(tree, parent_id, append)


def prepend_node(tree: Tree, new_node: CommentNode) -> Tree:
    """Put a new top-level comment first, matching the server's newest-first order"""
    return [new_node, *tree]


def replace_node(tree: Tree, node_id: str, updated: Union[CommentNode, Mapping[str, Any]]) -> Tree:
    """
    Replace a node's own fields, keep its replies and clear its transient flags.

    updated is either the server's copy of the comment or a mapping of field
    names to values. Its id, replies and transient flags are ignored.
    """
    if isinstance(updated, CommentNode):
        fields = {name: getattr(updated, name) for name in CommentNode.model_fields}
    else:
        fields = dict(updated)

    changes = {name: value for name, value in fields.items() if name not in _PROTECTED_FIELDS}
    changes.update(is_editing=False, is_deleting=False)

    return _map_node(tree, node_id, lambda node: node.model_copy(update=changes))


def remove_node(tree: Tree, node_id: str) -> Tree:
    """
    Drop the node and its whole subtree. Removing an unknown id is a no-op.
    """
    changed = False
    result = []
    for node in tree:
        if node.id == node_id:
            changed = True
            continue
        if node.replies:
            replies = remove_node(node.replies, node_id)
            if replies is not node.replies:
                node = node.model_copy(update={"replies": replies, "has_replies": bool(replies)})
                changed = True
        result.append(node)
    return result if changed else tree


def set_transient(tree: Tree, node_id: str, field: str, value: bool) -> Tree:
    """Set is_editing or is_deleting; turning one on turns the other off"""
    if field not in TRANSIENT_FIELDS:
        raise ValueError(f"Unknown transient field: {field}")

    changes = {field: value}
    if value:
        other = "is_deleting" if field == "is_editing" else "is_editing"
        changes[other] = False

    return _map_node(tree, node_id, lambda node: node.model_copy(update=changes))


def clear_transient(tree: Tree) -> Tree:
    """Reset every in-flight flag in the tree"""
    changed = False
    result = []
    for node in tree:
        replies = clear_transient(node.replies)
        if node.is_editing or node.is_deleting or replies is not node.replies:
            node = node.model_copy(update={"replies": replies, "is_editing": False, "is_deleting": False})
            changed = True
        result.append(node)
    return result if changed else tree


def merge_nodes(tree: Tree, nodes: Iterable[CommentNode]) -> Tree:
    """Append a further page of top-level nodes, skipping ids already present"""
    seen = {node.id for node in tree}
    fresh = []
    for node in nodes:
        if node.id not in seen:
            seen.add(node.id)
            fresh.append(node)
    return [*tree, *fresh] if fresh else tree


def with_display_author(node: CommentNode, viewer: Optional[Author]) -> CommentNode:
    """
    Fill in a missing author from the local viewer so a fresh comment can be
    shown at once. The result is flagged provisional_author; the next page-1
    fetch replaces it with the server's record.
    """
    if node.author is not None or viewer is None:
        return node
    return node.model_copy(update={
        "author": viewer,
        "user_id": node.user_id or viewer.user_id,
        "provisional_author": True,
    })
