"""Similarity engine for design-tree nodes.

Scores a pair of nodes in [0, 1] as a weighted sum of four signals:

- structural: element type, depth and child shapes, with per-type rules
  (buttons tolerate an icon child, containers are strict)
- layout: width and height within a relative tolerance
- style: agreement over a fixed checklist of style keys
- content: text equality, length and digit pattern

Every signal is symmetric, so similarity(a, b) == similarity(b, a).
"""

import re
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any

from ..config import GroupingConfig
from ..models import STYLE_KEYS, Node, NodeType
from .features import (
    ChildTypeInfo,
    StructureSignature,
    structure_signature,
    subtree_depths,
)

_DIGIT = re.compile(r"\d")


@dataclass
class SimilarityResult:
    """Result of similarity comparison between two nodes."""

    source_id: str
    target_id: str
    structural_score: float = 0.0
    layout_score: float = 0.0
    style_score: float = 0.0
    content_score: float = 0.0
    combined_score: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "source_id": self.source_id,
            "target_id": self.target_id,
            "structural_score": self.structural_score,
            "layout_score": self.layout_score,
            "style_score": self.style_score,
            "content_score": self.content_score,
            "combined_score": self.combined_score,
        }


def has_icon(node: Node) -> bool:
    """True if any direct child is an image."""
    return any(child.type is NodeType.IMAGE for child in node.children)


class SimilarityEngine:
    """Multi-signal similarity scoring for UI nodes."""

    def __init__(self, config: GroupingConfig | None = None):
        """Initialize the similarity engine.

        Args:
            config: Grouping configuration holding weights and tolerances.
        """
        self.config = config or GroupingConfig()
        self._structures: dict[int, StructureSignature] | None = None
        self._depths: dict[int, int] = {}

    @contextmanager
    def run_cache(self) -> Iterator[None]:
        """Reuse subtree depths and structures for the duration of a run.

        Entries are keyed by object identity and only valid while the
        caller holds the compared nodes. Nested use keeps the outer cache.
        """
        if self._structures is not None:
            yield
            return
        self._structures = {}
        try:
            yield
        finally:
            self._structures = None
            self._depths = {}

    def structure_of(self, node: Node) -> StructureSignature:
        """Structure signature of a node, cached inside `run_cache`."""
        if self._structures is None:
            return structure_signature(node)
        key = id(node)
        structure = self._structures.get(key)
        if structure is None:
            if key not in self._depths:
                subtree_depths(node, known=self._depths)
            structure = structure_signature(node, depth=self._depths[key])
            self._structures[key] = structure
        return structure

    def similarity(self, node1: Node, node2: Node) -> float:
        """Combined similarity score of two nodes."""
        return self.compute_similarity(node1, node2).combined_score

    def score_ceiling(self, node1: Node, node2: Node) -> float:
        """Highest combined score the pair can reach given its structure."""
        weights = self.config.weights
        return (
            self.structural_similarity(node1, node2) * weights.structure
            + weights.layout
            + weights.style
            + weights.content
        )

    def meets_threshold(self, node1: Node, node2: Node, threshold: float) -> bool:
        """True if the combined score of two nodes reaches a threshold.

        Layout, style and content are skipped when even perfect scores on
        them could not lift the structural score to the threshold.
        """
        if self.score_ceiling(node1, node2) < threshold:
            return False
        return self.similarity(node1, node2) >= threshold

    def compute_similarity(self, node1: Node, node2: Node) -> SimilarityResult:
        """Compute all similarity signals between two nodes.

        Args:
            node1: First node.
            node2: Second node.

        Returns:
            SimilarityResult with per-signal and combined scores.
        """
        structural = self.structural_similarity(node1, node2)
        layout = self.layout_similarity(node1, node2)
        style = self.style_similarity(node1, node2)
        content = self.content_similarity(node1, node2)

        weights = self.config.weights
        combined = (
            structural * weights.structure
            + layout * weights.layout
            + style * weights.style
            + content * weights.content
        )

        return SimilarityResult(
            source_id=node1.id,
            target_id=node2.id,
            structural_score=structural,
            layout_score=layout,
            style_score=style,
            content_score=content,
            combined_score=combined,
        )

    # ------------------------------------------------------------------
    # Structure
    # ------------------------------------------------------------------

    def structural_similarity(self, node1: Node, node2: Node) -> float:
        if node1.type is not node2.type:
            return 0.0

        structure1 = self.structure_of(node1)
        structure2 = self.structure_of(node2)

        if node1.type is NodeType.BUTTON:
            return self._button_similarity(structure1, structure2, node1, node2)
        if node1.type is NodeType.TEXT_INPUT:
            return self._input_similarity(structure1, structure2)
        return self._container_similarity(structure1, structure2)

    def _button_similarity(
        self,
        structure1: StructureSignature,
        structure2: StructureSignature,
        node1: Node,
        node2: Node,
    ) -> float:
        """Buttons stay similar when one of them carries an icon."""
        count1 = structure1.child_count
        count2 = structure2.child_count
        diff = abs(count1 - count2)

        # Text-only against text-plus-icon
        if count1 <= 1 and count2 <= 1:
            return 0.9

        if diff == 1:
            return 0.8 if has_icon(node1) != has_icon(node2) else 0.6

        if count1 <= 2 and count2 <= 2:
            return 0.5

        return max(0.0, 1 - diff / max(count1, count2))

    def _input_similarity(
        self, structure1: StructureSignature, structure2: StructureSignature
    ) -> float:
        if structure1.child_count == 0 and structure2.child_count == 0:
            return 1.0
        # A label or an icon
        if structure1.child_count <= 1 and structure2.child_count <= 1:
            return 0.8
        return self._container_similarity(structure1, structure2)

    def _container_similarity(
        self, structure1: StructureSignature, structure2: StructureSignature
    ) -> float:
        """Containers must match in depth, then in child shapes and counts."""
        if structure1.depth != structure2.depth:
            return 0.0

        child_type_sim = compare_child_types(
            structure1.child_types, structure2.child_types
        )
        hierarchy_sim = compare_hierarchy(structure1, structure2)
        return (child_type_sim + hierarchy_sim) / 2.0

    # ------------------------------------------------------------------
    # Layout, style, content
    # ------------------------------------------------------------------

    def layout_similarity(self, node1: Node, node2: Node) -> float:
        width_sim = self._dimension_similarity(node1.width, node2.width)
        height_sim = self._dimension_similarity(node1.height, node2.height)
        return (width_sim + height_sim) / 2.0

    def _dimension_similarity(self, dim1: float, dim2: float) -> float:
        diff = abs(dim1 - dim2)
        avg = (dim1 + dim2) / 2
        tolerance = avg * self.config.dimension_tolerance

        if diff <= tolerance:
            return 1.0
        return max(0.0, 1 - (diff - tolerance) / avg)

    def style_similarity(self, node1: Node, node2: Node) -> float:
        score = 0.0
        for key in STYLE_KEYS:
            value1 = node1.get_style(key)
            value2 = node2.get_style(key)
            if value1 == value2:
                score += 1.0
            elif _similar_colors(value1, value2):
                score += 0.5
        return score / len(STYLE_KEYS)

    def content_similarity(self, node1: Node, node2: Node) -> float:
        text1 = node1.text
        text2 = node2.text
        if not text1 and not text2:
            return 1.0
        if not text1 or not text2:
            return 0.5
        return text_pattern_similarity(text1, text2)


def _similar_colors(value1: str | None, value2: str | None) -> bool:
    """Both values look like hex colours of the same notation length."""
    if not value1 or not value2:
        return False
    return "#" in value1 and "#" in value2 and len(value1) == len(value2)


def text_pattern_similarity(text1: str, text2: str) -> float:
    """Compare two non-empty texts by length ratio and digit presence."""
    if text1 == text2:
        return 1.0

    length_sim = 1 - abs(len(text1) - len(text2)) / max(len(text1), len(text2))
    has_digits1 = _DIGIT.search(text1) is not None
    has_digits2 = _DIGIT.search(text2) is not None
    number_sim = 1.0 if has_digits1 == has_digits2 else 0.0

    return (length_sim + number_sim) / 2


def _greedy_child_match(
    children1: list[ChildTypeInfo], children2: list[ChildTypeInfo]
) -> float:
    """Match each child of the first list to its best unused partner."""
    total = 0.0
    used: set[int] = set()

    for child1 in children1:
        best_index = -1
        best_score = 0.0
        for index, child2 in enumerate(children2):
            if index in used:
                continue
            score = 0.0
            if child1.type == child2.type:
                score += 0.5
                if child1.has_children == child2.has_children:
                    score += 0.3
                    if child1.child_count == child2.child_count:
                        score += 0.2
            if score > best_score:
                best_score = score
                best_index = index

        if best_index >= 0:
            used.add(best_index)
            total += best_score

    return total


def compare_child_types(
    children1: list[ChildTypeInfo], children2: list[ChildTypeInfo]
) -> float:
    """Order-independent comparison of two child shape lists.

    The greedy match is run in both directions and averaged; a single
    direction depends on which list drives the matching.
    """
    if not children1 and not children2:
        return 1.0
    if not children1 or not children2:
        return 0.3

    max_length = max(len(children1), len(children2))
    min_length = min(len(children1), len(children2))

    match_score = (
        _greedy_child_match(children1, children2)
        + _greedy_child_match(children2, children1)
    ) / 2
    normalized = match_score / max_length

    size_penalty = 1 - ((max_length - min_length) / max_length) * 0.5
    return normalized * size_penalty


def compare_hierarchy(
    structure1: StructureSignature, structure2: StructureSignature
) -> float:
    score = 0.0
    if structure1.root_type == structure2.root_type:
        score += 0.5

    count1 = structure1.child_count
    count2 = structure2.child_count
    if count1 == count2:
        score += 0.5
    else:
        score += 0.5 * (1 - abs(count1 - count2) / max(count1, count2))
    return score
