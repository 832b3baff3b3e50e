"""Pattern labelling and variation analysis for node groups.

A group is labelled by the shape of its members (Card, Button, Input
Field, Image or Custom Component) and split into named variations:
button groups by background variant and icon presence, container groups
by badge presence. Other groups have no variations.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from ..config import DEFAULT_VARIANT_COLORS
from ..models import Node, NodeType
from .engine import has_icon

PATTERN_CARD = "Card"
PATTERN_BUTTON = "Button"
PATTERN_INPUT = "Input Field"
PATTERN_IMAGE = "Image"
PATTERN_CUSTOM = "Custom Component"

_TYPE_PATTERNS = {
    NodeType.BUTTON: PATTERN_BUTTON,
    NodeType.TEXT_INPUT: PATTERN_INPUT,
    NodeType.IMAGE: PATTERN_IMAGE,
}

# Style key used for buttons without a background
DEFAULT_BACKGROUND_KEY = "default"


@dataclass
class Variation:
    """A named subset of a group sharing a secondary trait."""

    type: str
    description: str
    examples: list[Node] = field(default_factory=list)

    @property
    def size(self) -> int:
        return len(self.examples)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "type": self.type,
            "description": self.description,
            "examples": [node.id for node in self.examples],
        }


@dataclass
class VariantPalette:
    """Maps button background colours to design-system variant names."""

    colors: dict[str, str] = field(default_factory=lambda: dict(DEFAULT_VARIANT_COLORS))
    default: str = "Custom"

    @classmethod
    def from_mapping(
        cls, colors: Mapping[str, str], default: str = "Custom"
    ) -> "VariantPalette":
        return cls(colors=dict(colors), default=default)

    def name_for(self, color: str | None) -> str:
        if color is None:
            return self.default
        return self.colors.get(color, self.default)


def is_card_like(nodes: list[Node]) -> bool:
    """Every node is a container with children and a background."""
    return bool(nodes) and all(
        node.type is NodeType.CONTAINER and node.children and node.background
        for node in nodes
    )


def label_pattern(nodes: list[Node]) -> str:
    """Name the UI pattern a group of nodes represents."""
    if not nodes:
        return PATTERN_CUSTOM
    if is_card_like(nodes):
        return PATTERN_CARD
    return _TYPE_PATTERNS.get(nodes[0].type, PATTERN_CUSTOM)


class VariationAnalyzer:
    """Splits a group into human-readable variations."""

    def __init__(
        self, palette: VariantPalette | None = None, badge_size_ratio: float = 0.3
    ):
        self.palette = palette or VariantPalette()
        self.badge_size_ratio = badge_size_ratio

    def identify_variations(self, nodes: list[Node]) -> list[Variation]:
        """Partition a group into variations.

        Args:
            nodes: Group members; the first one decides the analysis.

        Returns:
            Variations for button and container groups, otherwise empty.
        """
        if not nodes:
            return []
        if nodes[0].type is NodeType.BUTTON:
            return self._button_variations(nodes)
        if nodes[0].type is NodeType.CONTAINER:
            return self._badge_variations(nodes)
        return []

    def _button_variations(self, nodes: list[Node]) -> list[Variation]:
        variations: list[Variation] = []

        style_groups: dict[str, list[Node]] = {}
        with_icon: list[Node] = []
        without_icon: list[Node] = []
        for node in nodes:
            background = node.background or DEFAULT_BACKGROUND_KEY
            style_groups.setdefault(background, []).append(node)
            if has_icon(node):
                with_icon.append(node)
            else:
                without_icon.append(node)

        if len(style_groups) > 1:
            for background, members in style_groups.items():
                variant = self.palette.name_for(background)
                variations.append(
                    Variation(
                        type=variant,
                        description=f"{variant} style buttons ({len(members)} instances)",
                        examples=members,
                    )
                )

        if with_icon and without_icon:
            variations.append(
                Variation(
                    type="With Icon",
                    description=f"Buttons with icon ({len(with_icon)} instances)",
                    examples=with_icon,
                )
            )
            variations.append(
                Variation(
                    type="Without Icon",
                    description=f"Buttons without icon ({len(without_icon)} instances)",
                    examples=without_icon,
                )
            )

        return variations

    def _badge_variations(self, nodes: list[Node]) -> list[Variation]:
        with_badge = [node for node in nodes if self.has_badge(node)]
        without_badge = [node for node in nodes if not self.has_badge(node)]

        if not with_badge or not without_badge:
            return []

        return [
            Variation(
                type="With Badge",
                description=(
                    f"Cards with additional badge component ({len(with_badge)} instances)"
                ),
                examples=with_badge,
            ),
            Variation(
                type="Without Badge",
                description=f"Basic cards without badge ({len(without_badge)} instances)",
                examples=without_badge,
            ),
        ]

    def has_badge(self, node: Node) -> bool:
        """A small, coloured direct child relative to the node's size."""
        ratio = self.badge_size_ratio
        return any(
            child.width < node.width * ratio
            and child.height < node.height * ratio
            and child.background
            for child in node.children
        )
