"""Data models for design-tree inspection.

This module defines the node schema shared by both detection pipelines:
the element type enumeration, the node record with its style bag, and the
conversion from the JSON-like dictionaries produced by design tools.
"""

import json
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

from .errors import InputFileError, NodeFormatError

# Style keys compared by the similarity scorer, in checklist order.
STYLE_KEYS = (
    "background",
    "color",
    "border",
    "display",
    "font-size",
    "font-weight",
    "line-height",
)

# Style keys carried into a group's common-style subset.
COMMON_STYLE_KEYS = ("background", "color", "border", "display")

# Record keys that map onto Node fields rather than the style or extra bags.
_CORE_KEYS = frozenset(
    ["id", "name", "type", "x", "y", "width", "height", "text", "children"]
)


class NodeType(Enum):
    """Closed set of UI element types.

    Values are the type names used in serialized design trees.
    """

    CONTAINER = "Div"
    TEXT_INPUT = "Input"
    IMAGE = "Image"
    BUTTON = "Button"

    @classmethod
    def parse(cls, value: "str | NodeType") -> "NodeType":
        """Resolve a serialized type name, an alias or a member name.

        Raises:
            ValueError: If the value names no known element type.
        """
        if isinstance(value, cls):
            return value
        text = str(value)
        for member in cls:
            if text == member.value or text.upper() == member.name:
                return member
        alias = _TYPE_ALIASES.get(text.lower())
        if alias is None:
            raise ValueError(f"Unknown node type: {value!r}")
        return alias


_TYPE_ALIASES = {
    "container": NodeType.CONTAINER,
    "div": NodeType.CONTAINER,
    "input": NodeType.TEXT_INPUT,
    "textinput": NodeType.TEXT_INPUT,
    "text_input": NodeType.TEXT_INPUT,
}


@dataclass
class Node:
    """A UI element with geometry, style and ordered children.

    `style` only holds the recognized style keys (STYLE_KEYS). Any other
    string-keyed attribute of the source record lands in `extra`, which the
    scoring code never reads.
    """

    id: str
    type: NodeType
    x: float = 0
    y: float = 0
    width: float = 0
    height: float = 0
    name: str = ""
    text: str | None = None
    style: dict[str, str] = field(default_factory=dict)
    extra: dict[str, Any] = field(default_factory=dict)
    children: list["Node"] = field(default_factory=list)

    @property
    def background(self) -> str | None:
        return self.style.get("background")

    @property
    def is_leaf(self) -> bool:
        return not self.children

    @property
    def child_count(self) -> int:
        return len(self.children)

    def get_style(self, key: str) -> str | None:
        """Return a recognized style value, or None when unset."""
        return self.style.get(key)

    def to_dict(self) -> dict[str, Any]:
        """Convert the node and its subtree to nested dictionaries."""
        root = self._record()
        stack = [(self, root)]
        while stack:
            node, record = stack.pop()
            for child in node.children:
                child_record = child._record()
                record["children"].append(child_record)
                stack.append((child, child_record))
        return root

    def _record(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "type": self.type.value,
            "x": self.x,
            "y": self.y,
            "width": self.width,
            "height": self.height,
        }
        if self.text is not None:
            result["text"] = self.text
        result.update(self.style)
        result.update(self.extra)
        result["children"] = []
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Node":
        """Create a node tree from a nested dictionary.

        Raises:
            NodeFormatError: If a record lacks an id or a valid type, or has
                non-numeric or negative dimensions.
        """
        root, raw_children = cls._from_record(data)
        stack = [(root, raw_children)]
        while stack:
            parent, records = stack.pop()
            for record in records:
                child, grandchildren = cls._from_record(record)
                parent.children.append(child)
                stack.append((child, grandchildren))
        return root

    @classmethod
    def _from_record(cls, data: Any) -> tuple["Node", list[Any]]:
        """Parse one record into a childless Node plus its raw child records."""
        if not isinstance(data, dict):
            raise NodeFormatError(
                f"Node record must be an object, got {type(data).__name__}"
            )

        node_id = data.get("id")
        if node_id is None or node_id == "":
            raise NodeFormatError("Node record is missing an id")
        node_id = str(node_id)

        if "type" not in data:
            raise NodeFormatError(f"Node {node_id} is missing a type", node_id)
        try:
            node_type = NodeType.parse(data["type"])
        except ValueError as e:
            raise NodeFormatError(f"Node {node_id}: {e}", node_id) from e

        geometry = {}
        for key in ("x", "y", "width", "height"):
            value = data.get(key, 0)
            if isinstance(value, bool) or not isinstance(value, int | float):
                raise NodeFormatError(
                    f"Node {node_id} has non-numeric {key}: {value!r}", node_id
                )
            geometry[key] = value
        if geometry["width"] < 0 or geometry["height"] < 0:
            raise NodeFormatError(
                f"Node {node_id} has negative dimensions "
                f"{geometry['width']}x{geometry['height']}",
                node_id,
            )

        raw_children = data.get("children") or []
        if not isinstance(raw_children, list):
            raise NodeFormatError(f"Node {node_id} children must be a list", node_id)

        style: dict[str, str] = {}
        extra: dict[str, Any] = {}
        for key, value in data.items():
            if key in _CORE_KEYS:
                continue
            if key in STYLE_KEYS:
                if value is not None:
                    style[key] = str(value)
            else:
                extra[key] = value

        text = data.get("text")
        node = cls(
            id=node_id,
            type=node_type,
            name=str(data.get("name", "")),
            text=None if text is None else str(text),
            style=style,
            extra=extra,
            **geometry,
        )
        return node, raw_children


def read_tree_file(path: str | Path) -> Any:
    """Read and parse a JSON tree file.

    Raises:
        InputFileError: If the file cannot be read or is not valid JSON.
    """
    path = Path(path)
    try:
        with open(path, encoding="utf-8") as f:
            return json.load(f)
    except OSError as e:
        raise InputFileError(f"Cannot read tree file: {e}", str(path)) from e
    except json.JSONDecodeError as e:
        raise InputFileError(f"Invalid JSON in tree file: {e}", str(path)) from e
    except RecursionError as e:
        raise InputFileError("Tree file is nested too deeply to parse", str(path)) from e


def load_tree(path: str | Path) -> Node:
    """Load a nested node tree from a JSON file.

    Args:
        path: File holding a single root node object.

    Returns:
        The root Node with embedded children.

    Raises:
        InputFileError: If the file cannot be read or is not valid JSON.
        NodeFormatError: If a node record is malformed.
    """
    return Node.from_dict(read_tree_file(path))
