"""Arena-style storage for design trees.

A TreeStore keeps node attributes keyed by id and ordered child-id lists
keyed by id, plus a reverse parent index. Identity is decoupled from
position, lookups are O(1), and parent queries never rescan the adjacency
lists.
"""

from collections.abc import Iterator
from dataclasses import replace
from pathlib import Path

from .errors import (
    CyclicTreeError,
    DanglingChildError,
    DuplicateNodeIdError,
    NodeFormatError,
)
from .inspector_logging import get_logger
from .models import Node, read_tree_file

logger = get_logger()

NodeAttrsById = dict[str, Node]
ChildrenById = dict[str, list[str]]


class TreeStore:
    """Flattened, read-only view of a rooted node tree.

    Node attributes are stored without their embedded children; structure
    lives only in the adjacency map. Iteration follows insertion order,
    which for `flatten` is a pre-order traversal of the source tree.
    """

    def __init__(
        self,
        nodes: NodeAttrsById,
        children: ChildrenById,
        root_id: str | None = None,
    ):
        """Initialize from already-validated maps.

        Use `flatten` or `from_maps` instead of calling this directly.
        """
        self._nodes = nodes
        self._children = children
        self.root_id = root_id
        self._parents: dict[str, str] = {}
        for parent_id, child_ids in children.items():
            for child_id in child_ids:
                self._parents[child_id] = parent_id

    @classmethod
    def flatten(cls, root: Node | None) -> "TreeStore":
        """Flatten an embedded tree into attribute and adjacency maps.

        Args:
            root: Root node of the tree, or None for an empty store.

        Returns:
            TreeStore whose key set is every id reachable from the root.

        Raises:
            DuplicateNodeIdError: If an id appears more than once.
            CyclicTreeError: If a node is its own descendant.
        """
        nodes: NodeAttrsById = {}
        children: ChildrenById = {}
        if root is None:
            return cls(nodes, children)

        # Nodes on the current root-to-node path, by object identity
        path: set[int] = set()
        stack: list[tuple[Node, bool]] = [(root, False)]
        while stack:
            node, leaving = stack.pop()
            if leaving:
                path.discard(id(node))
                continue
            if id(node) in path:
                raise CyclicTreeError(node.id)
            if node.id in nodes:
                raise DuplicateNodeIdError(node.id)

            nodes[node.id] = replace(node, children=[])
            children[node.id] = [child.id for child in node.children]

            path.add(id(node))
            stack.append((node, True))
            stack.extend((child, False) for child in reversed(node.children))

        return cls(nodes, children, root.id)

    @classmethod
    def from_maps(
        cls,
        nodes: NodeAttrsById,
        children: ChildrenById,
        root_id: str | None = None,
        strict: bool = True,
    ) -> "TreeStore":
        """Build a store from externally flattened maps.

        Args:
            nodes: Node attributes keyed by id.
            children: Ordered child ids keyed by parent id. Ids without an
                entry are leaves; entries for unknown parents are skipped
                with a warning.
            root_id: Optional explicit root id.
            strict: Raise on dangling child references instead of dropping
                them with a warning.

        Returns:
            TreeStore over the given maps.

        Raises:
            DanglingChildError: In strict mode, for a child id without attributes.
            DuplicateNodeIdError: If a child id is listed under two parents.
            CyclicTreeError: If the adjacency contains a cycle.
        """
        node_map: NodeAttrsById = dict(nodes)
        child_map: ChildrenById = {}
        seen_children: set[str] = set()

        for node_id in node_map:
            kept: list[str] = []
            for child_id in children.get(node_id, []):
                if child_id not in node_map:
                    if strict:
                        raise DanglingChildError(node_id, child_id)
                    logger.warning(
                        f"Dropping reference from {node_id} to unknown node {child_id}"
                    )
                    continue
                if child_id in seen_children:
                    raise DuplicateNodeIdError(child_id)
                seen_children.add(child_id)
                kept.append(child_id)
            child_map[node_id] = kept

        for parent_id in children:
            if parent_id not in node_map:
                logger.warning(f"Ignoring adjacency for unknown node {parent_id}")

        store = cls(node_map, child_map, root_id)
        store._check_acyclic()
        if store.root_id is None:
            roots = [node_id for node_id in node_map if node_id not in store._parents]
            if len(roots) == 1:
                store.root_id = roots[0]
        return store

    def _check_acyclic(self) -> None:
        """Walk up from every node; meeting a node twice on one walk is a cycle.

        Walks stop at nodes already known to reach a root, so each parent
        link is followed once.
        """
        settled: set[str] = set()
        for node_id in self._nodes:
            walk: set[str] = set()
            current: str | None = node_id
            while current is not None and current not in settled:
                if current in walk:
                    raise CyclicTreeError(current)
                walk.add(current)
                current = self._parents.get(current)
            settled.update(walk)

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._nodes

    def ids(self) -> list[str]:
        """All node ids in insertion order."""
        return list(self._nodes)

    def iter_nodes(self) -> Iterator[Node]:
        """Yield node attribute records in insertion order."""
        yield from self._nodes.values()

    def get_node(self, node_id: str) -> Node | None:
        """Return the attributes for an id, or None with a warning."""
        node = self._nodes.get(node_id)
        if node is None:
            logger.warning(f"Node not found: {node_id}")
        return node

    def children_of(self, node_id: str) -> list[str]:
        return list(self._children.get(node_id, []))

    def parent_of(self, node_id: str) -> str | None:
        return self._parents.get(node_id)

    def ancestors(self, node_id: str) -> list[str]:
        """Ancestor ids from the direct parent up to the root."""
        result = []
        current = self._parents.get(node_id)
        while current is not None:
            result.append(current)
            current = self._parents.get(current)
        return result

    def descendants(self, node_id: str) -> list[str]:
        """All descendant ids in pre-order."""
        result: list[str] = []
        stack = list(reversed(self._children.get(node_id, [])))
        while stack:
            current = stack.pop()
            result.append(current)
            stack.extend(reversed(self._children.get(current, [])))
        return result

    def depth(self, node_id: str) -> int:
        """Height of the subtree rooted at an id; a leaf has depth 1."""
        depths: dict[str, int] = {}
        stack: list[tuple[str, bool]] = [(node_id, False)]
        while stack:
            current, expanded = stack.pop()
            child_ids = self._children.get(current, [])
            if expanded:
                depths[current] = 1 + max(
                    (depths[child_id] for child_id in child_ids), default=0
                )
            else:
                stack.append((current, True))
                stack.extend((child_id, False) for child_id in child_ids)
        return depths[node_id]

    def to_tree(self, node_id: str | None = None) -> Node | None:
        """Rebuild an embedded-children Node for a subtree.

        Args:
            node_id: Subtree root; defaults to the store's root.

        Returns:
            A new Node tree, or None if the id has no attributes. Children
            without attributes are skipped.
        """
        node_id = node_id if node_id is not None else self.root_id
        if node_id is None:
            return None
        node = self.get_node(node_id)
        if node is None:
            return None

        root = replace(node, children=[])
        stack = [(node_id, root)]
        while stack:
            parent_id, parent = stack.pop()
            for child_id in self._children.get(parent_id, []):
                child = self.get_node(child_id)
                if child is None:
                    continue
                child = replace(child, children=[])
                parent.children.append(child)
                stack.append((child_id, child))
        return root

    def as_maps(self) -> tuple[NodeAttrsById, ChildrenById]:
        """Return copies of the attribute and adjacency maps."""
        return dict(self._nodes), {k: list(v) for k, v in self._children.items()}


def flatten(root: Node | None) -> tuple[NodeAttrsById, ChildrenById]:
    """Flatten an embedded tree into (attributes by id, child ids by id)."""
    return TreeStore.flatten(root).as_maps()


def load_store(path: str | Path, strict: bool = True) -> TreeStore:
    """Load a tree file into a TreeStore.

    Two layouts are accepted: a single nested root node object, or a
    flattened document ``{"root": id, "nodes": [...], "children": {id: [ids]}}``
    whose node records may also list their child ids under "children".

    Args:
        path: JSON file to read.
        strict: For flattened documents, raise on dangling child references
            instead of dropping them with a warning.

    Raises:
        InputFileError: If the file cannot be read or parsed.
        NodeFormatError: If a node record is malformed.
        TreeValidationError: If the tree violates its invariants.
    """
    data = read_tree_file(path)
    if not (isinstance(data, dict) and "nodes" in data):
        return TreeStore.flatten(Node.from_dict(data))

    records = data["nodes"]
    if isinstance(records, dict):
        records = list(records.values())
    if not isinstance(records, list):
        raise NodeFormatError(
            f"'nodes' must be a list or an object, got {type(records).__name__}"
        )

    raw_children = data.get("children") or {}
    if not isinstance(raw_children, dict):
        raise NodeFormatError(
            "'children' must map node ids to lists of child ids, "
            f"got {type(raw_children).__name__}"
        )

    nodes: NodeAttrsById = {}
    children: ChildrenById = {
        str(k): _child_id_list(str(k), v) for k, v in raw_children.items()
    }
    for record in records:
        child_ids = None
        if isinstance(record, dict):
            record = dict(record)
            child_ids = record.pop("children", None)
        node = Node.from_dict(record)
        if node.id in nodes:
            raise DuplicateNodeIdError(node.id)
        nodes[node.id] = node
        if child_ids and node.id not in children:
            children[node.id] = _child_id_list(node.id, child_ids)

    root_id = data.get("root")
    return TreeStore.from_maps(
        nodes,
        children,
        root_id=str(root_id) if root_id is not None else None,
        strict=strict,
    )


def _child_id_list(parent_id: str, child_ids: object) -> list[str]:
    if not isinstance(child_ids, list):
        raise NodeFormatError(
            f"Children of {parent_id} must be a list of ids, "
            f"got {type(child_ids).__name__}",
            parent_id,
        )
    return [str(child_id) for child_id in child_ids]
