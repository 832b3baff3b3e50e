"""Group-level feature extraction.

Summarizes a set of nodes (usually the members of one group): the
structure of the first member, the style values every member shares, the
size range and the position spread.
"""

from dataclasses import dataclass, field
from typing import Any

import numpy as np

from ..errors import CyclicTreeError
from ..models import COMMON_STYLE_KEYS, Node


@dataclass
class ChildTypeInfo:
    """Shape of one direct child."""

    type: str
    has_children: bool
    child_count: int

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "type": self.type,
            "has_children": self.has_children,
            "child_count": self.child_count,
        }


@dataclass
class StructureSignature:
    """Root type, subtree depth and per-child shapes of a node."""

    root_type: str
    depth: int
    child_types: list[ChildTypeInfo] = field(default_factory=list)

    @property
    def child_count(self) -> int:
        return len(self.child_types)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "root_type": self.root_type,
            "depth": self.depth,
            "child_types": [c.to_dict() for c in self.child_types],
            "child_count": self.child_count,
        }


@dataclass
class DimensionRange:
    """Component-wise size bounds."""

    min_width: float
    max_width: float
    min_height: float
    max_height: float

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "min_width": self.min_width,
            "max_width": self.max_width,
            "min_height": self.min_height,
            "max_height": self.max_height,
        }


@dataclass
class PositionPattern:
    """Mean and population variance of member positions."""

    average_x: float
    average_y: float
    x_variance: float
    y_variance: float

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "average_x": self.average_x,
            "average_y": self.average_y,
            "x_variance": self.x_variance,
            "y_variance": self.y_variance,
        }


@dataclass
class Features:
    """Features shared by the members of a group."""

    structure: StructureSignature
    style_properties: dict[str, str]
    dimensions: DimensionRange
    position_pattern: PositionPattern

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "structure": self.structure.to_dict(),
            "style_properties": dict(self.style_properties),
            "dimensions": self.dimensions.to_dict(),
            "position_pattern": self.position_pattern.to_dict(),
        }


def subtree_depths(node: Node, known: dict[int, int] | None = None) -> dict[int, int]:
    """Subtree depth of `node` and every descendant, keyed by object identity.

    Walks with an explicit stack, so arbitrarily deep chains are fine.
    Nodes already present in `known` are not revisited, and `known` is
    updated in place when given.

    Raises:
        CyclicTreeError: If a node is its own descendant.
    """
    depths = known if known is not None else {}
    pending: set[int] = set()
    stack: list[tuple[Node, bool]] = [(node, False)]
    while stack:
        current, expanded = stack.pop()
        key = id(current)
        if expanded:
            pending.discard(key)
            depths[key] = 1 + max(
                (depths[id(child)] for child in current.children), default=0
            )
            continue
        if key in depths:
            continue
        if key in pending:
            raise CyclicTreeError(current.id)
        pending.add(key)
        stack.append((current, True))
        stack.extend((child, False) for child in current.children)
    return depths


def tree_depth(node: Node) -> int:
    """Height of a node's subtree; a leaf has depth 1."""
    return subtree_depths(node)[id(node)]


def structure_signature(node: Node, depth: int | None = None) -> StructureSignature:
    """Describe the structure of a node and its direct children.

    Args:
        node: Node to describe.
        depth: Precomputed subtree depth; computed from the node when omitted.
    """
    return StructureSignature(
        root_type=node.type.value,
        depth=tree_depth(node) if depth is None else depth,
        child_types=[
            ChildTypeInfo(
                type=child.type.value,
                has_children=bool(child.children),
                child_count=len(child.children),
            )
            for child in node.children
        ],
    )


def common_styles(nodes: list[Node]) -> dict[str, str]:
    """Style values present and identical on every node.

    Strict intersection: a key missing on any node is left out.
    """
    common: dict[str, str] = {}
    for key in COMMON_STYLE_KEYS:
        values = [node.get_style(key) for node in nodes]
        if not values or any(v is None for v in values):
            continue
        if all(v == values[0] for v in values):
            common[key] = values[0]
    return common


def extract_features(nodes: list[Node]) -> Features:
    """Compute the common features of a group of nodes.

    Args:
        nodes: At least one node; the first one defines the structure.

    Returns:
        Features of the group.

    Raises:
        ValueError: If no nodes are given.
    """
    if not nodes:
        raise ValueError("Cannot extract features from an empty node list")

    widths = np.array([n.width for n in nodes], dtype=float)
    heights = np.array([n.height for n in nodes], dtype=float)
    xs = np.array([n.x for n in nodes], dtype=float)
    ys = np.array([n.y for n in nodes], dtype=float)

    return Features(
        structure=structure_signature(nodes[0]),
        style_properties=common_styles(nodes),
        dimensions=DimensionRange(
            min_width=float(widths.min()),
            max_width=float(widths.max()),
            min_height=float(heights.min()),
            max_height=float(heights.max()),
        ),
        position_pattern=PositionPattern(
            average_x=float(xs.mean()),
            average_y=float(ys.mean()),
            x_variance=float(xs.var()),
            y_variance=float(ys.var()),
        ),
    )
