"""Structural signatures for exact component matching.

A signature encodes a node's type and size plus the sorted type and size
of its immediate children:

    Div_240x320_children[Button_200x40|Div_200x24|Div_200x24|Image_200x160]

Only one level of children is embedded. Two parents whose children match
in type and size but differ further down share a signature.
"""

from ..models import Node
from ..tree import TreeStore


def _format_dimension(value: float) -> str:
    """Render integral floats without a trailing '.0'."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def shallow_signature(node: Node) -> str:
    """Return the `type_WxH` key of a single node."""
    return (
        f"{node.type.value}_"
        f"{_format_dimension(node.width)}x{_format_dimension(node.height)}"
    )


class SignatureBuilder:
    """Computes and caches node signatures over a TreeStore."""

    def __init__(self, store: TreeStore):
        self.store = store
        self._cache: dict[str, str | None] = {}

    def signature(self, node_id: str) -> str | None:
        """Return the signature of a node.

        Args:
            node_id: Id of the node to describe.

        Returns:
            The signature string, or None if the node has no attributes.
            Children without attributes are left out of the signature.
        """
        if node_id in self._cache:
            return self._cache[node_id]

        node = self.store.get_node(node_id)
        if node is None:
            self._cache[node_id] = None
            return None

        base = shallow_signature(node)
        child_signatures = []
        for child_id in self.store.children_of(node_id):
            child = self.store.get_node(child_id)
            if child is not None:
                child_signatures.append(shallow_signature(child))

        if child_signatures:
            signature = f"{base}_children[{'|'.join(sorted(child_signatures))}]"
        else:
            signature = base

        self._cache[node_id] = signature
        return signature


def node_signature(node: Node) -> str:
    """Signature of an embedded-children Node, without building a store."""
    base = shallow_signature(node)
    if not node.children:
        return base
    child_signatures = sorted(shallow_signature(child) for child in node.children)
    return f"{base}_children[{'|'.join(child_signatures)}]"
