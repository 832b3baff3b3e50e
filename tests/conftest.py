"""
Shared fixtures for the design inspector test suite.

Provides test fixtures for:
- Node builders for every element type
- Sample trees used by the detection and grouping scenarios
- Writing trees and configs to temporary files
- Resetting the package logger between tests
"""

import json
import logging
from pathlib import Path
from typing import Any

import pytest

from design_inspector.inspector_logging import LOGGER_NAME
from design_inspector.models import Node, NodeType


class NodeFactory:
    """Builds nodes with sensible defaults and a running id counter."""

    def __init__(self) -> None:
        self._counter = 0

    def _next_id(self, prefix: str) -> str:
        self._counter += 1
        return f"{prefix}{self._counter}"

    def node(
        self,
        node_type: NodeType,
        *children: Node,
        id: str | None = None,
        width: float = 100,
        height: float = 100,
        x: float = 0,
        y: float = 0,
        text: str | None = None,
        background: str | None = None,
        style: dict[str, str] | None = None,
        **extra: Any,
    ) -> Node:
        style = dict(style or {})
        if background is not None:
            style["background"] = background
        return Node(
            id=id or self._next_id(node_type.value.lower()),
            type=node_type,
            x=x,
            y=y,
            width=width,
            height=height,
            name=node_type.value,
            text=text,
            style=style,
            extra=extra,
            children=list(children),
        )

    def div(self, *children: Node, **kwargs: Any) -> Node:
        return self.node(NodeType.CONTAINER, *children, **kwargs)

    def button(self, *children: Node, **kwargs: Any) -> Node:
        kwargs.setdefault("width", 100)
        kwargs.setdefault("height", 30)
        return self.node(NodeType.BUTTON, *children, **kwargs)

    def image(self, **kwargs: Any) -> Node:
        return self.node(NodeType.IMAGE, **kwargs)

    def text_input(self, *children: Node, **kwargs: Any) -> Node:
        kwargs.setdefault("width", 200)
        kwargs.setdefault("height", 32)
        return self.node(NodeType.TEXT_INPUT, *children, **kwargs)

    def icon(self, **kwargs: Any) -> Node:
        kwargs.setdefault("width", 16)
        kwargs.setdefault("height", 16)
        return self.image(**kwargs)

    def chain(self, depth: int, prefix: str = "level") -> Node:
        """Single path of nested Divs, ids level-0 (root) to level-<depth-1>."""
        root = self.div(id=f"{prefix}-0")
        current = root
        for level in range(1, depth):
            child = self.div(id=f"{prefix}-{level}")
            current.children.append(child)
            current = child
        return root


@pytest.fixture()
def factory() -> NodeFactory:
    """Fresh node factory with its own id counter."""
    return NodeFactory()


# ---------------------------------------------------------------------------
# Sample trees
# ---------------------------------------------------------------------------


@pytest.fixture()
def button_pair_tree(factory: NodeFactory) -> Node:
    """A container holding two identical 100x30 buttons."""
    return factory.div(
        factory.button(id="btn-1", text="Save"),
        factory.button(id="btn-2", x=120, text="Cancel"),
        id="toolbar",
        width=400,
        height=60,
    )


@pytest.fixture()
def nested_cards_tree(factory: NodeFactory) -> Node:
    """Two identical cards, each holding two identical buttons."""

    def card(card_id: str, x: float) -> Node:
        return factory.div(
            factory.button(id=f"{card_id}-ok", text="OK"),
            factory.button(id=f"{card_id}-cancel", text="Cancel"),
            id=card_id,
            x=x,
            width=240,
            height=120,
            background="#ffffff",
        )

    return factory.div(
        card("card-1", 0),
        card("card-2", 260),
        id="page",
        width=800,
        height=600,
    )


@pytest.fixture()
def catalog_tree(factory: NodeFactory) -> Node:
    """A product catalog page of 225 nodes with 30 identical product cards.

    Cards sit in three rows of different lengths so that the rows never
    share a signature; a sidebar of uniquely sized links pads the tree.
    """

    def product_card(number: int) -> Node:
        return factory.div(
            factory.image(id=f"product-{number}-image", width=200, height=160),
            factory.div(id=f"product-{number}-title", width=200, height=24),
            factory.div(id=f"product-{number}-price", width=200, height=24),
            factory.button(
                id=f"product-{number}-buy", width=200, height=40, text="Add to cart"
            ),
            id=f"product-{number}",
            width=240,
            height=320,
            background="#ffffff",
        )

    numbers = iter(range(1, 31))
    rows = [
        factory.div(
            *[product_card(next(numbers)) for _ in range(count)],
            id=f"row-{index}",
            width=1200,
            height=340,
        )
        for index, count in enumerate((12, 10, 8), start=1)
    ]
    sidebar = factory.div(
        *[
            factory.div(id=f"link-{i}", width=100 + i, height=20, text=f"Link {i}")
            for i in range(70)
        ],
        id="sidebar",
        width=220,
        height=1600,
    )
    return factory.div(*rows, sidebar, id="catalog", width=1440, height=3000)


# ---------------------------------------------------------------------------
# Files
# ---------------------------------------------------------------------------


@pytest.fixture()
def write_json(tmp_path: Path):
    """Write a JSON document into the test's temporary directory."""

    def _write(data: Any, name: str = "tree.json") -> Path:
        path = tmp_path / name
        path.write_text(json.dumps(data, indent=2), encoding="utf-8")
        return path

    return _write


# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def reset_inspector_logger():
    """Undo any setup_logging call so later tests see default propagation."""
    yield
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)
    logger.propagate = True
