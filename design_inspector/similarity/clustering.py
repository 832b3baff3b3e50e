"""Greedy similarity clustering for design-tree nodes.

This module groups nodes that look like instances of the same component.
Clustering is first-fit: each unassigned node in input order seeds a group
with every unassigned node scoring at or above the effective threshold
against it. Members are only guaranteed to match the seed, not each other,
and the result depends on input order.
"""

from dataclasses import dataclass, field
from typing import Any

import numpy as np

from ..config import GroupingConfig
from ..inspector_logging import LogCategory, get_category_logger
from ..models import Node, NodeType
from ..timing import timed
from .engine import SimilarityEngine
from .features import Features, extract_features
from .variations import Variation, VariationAnalyzer, label_pattern

logger = get_category_logger(LogCategory.GROUPING)


@dataclass
class NodeGroup:
    """A group of nodes judged to be the same component."""

    id: str
    pattern: str
    nodes: list[Node] = field(default_factory=list)
    features: Features | None = None
    variations: list[Variation] = field(default_factory=list)
    representative: str | None = None  # Most central member id
    avg_internal_similarity: float = 0.0

    @property
    def size(self) -> int:
        return len(self.nodes)

    @property
    def node_ids(self) -> list[str]:
        return [node.id for node in self.nodes]

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "pattern": self.pattern,
            "nodes": self.node_ids,
            "size": self.size,
            "features": self.features.to_dict() if self.features else None,
            "variations": [v.to_dict() for v in self.variations],
            "representative": self.representative,
            "avg_internal_similarity": self.avg_internal_similarity,
        }


@dataclass
class GroupingResult:
    """Result of a grouping run."""

    groups: list[NodeGroup] = field(default_factory=list)
    ungrouped: list[str] = field(default_factory=list)  # Node ids in no group
    total_nodes: int = 0

    @property
    def group_count(self) -> int:
        return len(self.groups)

    @property
    def grouped_node_count(self) -> int:
        return sum(g.size for g in self.groups)

    def groups_by_pattern(self, pattern: str) -> list[NodeGroup]:
        return [g for g in self.groups if g.pattern == pattern]

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "groups": [g.to_dict() for g in self.groups],
            "ungrouped": self.ungrouped,
            "total_nodes": self.total_nodes,
        }


class GreedyClustering:
    """First-fit clustering over a flat node list."""

    def __init__(
        self,
        config: GroupingConfig | None = None,
        similarity_engine: SimilarityEngine | None = None,
        variation_analyzer: VariationAnalyzer | None = None,
    ):
        """Initialize the clustering engine.

        Args:
            config: Grouping configuration (thresholds, weights, sizes).
            similarity_engine: Engine used to score node pairs.
            variation_analyzer: Analyzer used to split groups into variations.
        """
        self.config = config or GroupingConfig()
        self.similarity_engine = similarity_engine or SimilarityEngine(self.config)
        self.variation_analyzer = variation_analyzer or VariationAnalyzer(
            badge_size_ratio=self.config.badge_size_ratio
        )

    def threshold_for(self, node: Node) -> float:
        """Similarity cutoff for a node.

        Childless containers carry the least structural signal and need a
        higher score to be grouped.
        """
        threshold = self.config.similarity_threshold
        if node.type is NodeType.CONTAINER and not node.children:
            threshold += self.config.childless_container_threshold_increase
        return threshold

    @timed("similarity_grouping")
    def group(self, nodes: list[Node]) -> GroupingResult:
        """Group similar nodes.

        Args:
            nodes: Flat node list; order decides which node seeds each group.

        Returns:
            GroupingResult with groups in emission order.
        """
        result = GroupingResult(total_nodes=len(nodes))
        processed: set[str] = set()

        with self.similarity_engine.run_cache():
            for node in nodes:
                if node.id in processed:
                    continue

                members = self._find_similar(node, nodes, processed)
                if len(members) < self.config.min_group_size:
                    continue

                group = self._create_group(len(result.groups) + 1, members)
                result.groups.append(group)
                processed.update(member.id for member in members)
                logger.debug(
                    f"Grouped {group.size} nodes as {group.pattern} ({group.id}) "
                    f"seeded by {node.id}"
                )

        result.ungrouped = [node.id for node in nodes if node.id not in processed]
        logger.debug(
            f"Formed {result.group_count} groups from {len(nodes)} nodes",
            extra={"node_count": len(nodes), "group_count": result.group_count},
        )
        return result

    def _find_similar(
        self, reference: Node, nodes: list[Node], processed: set[str]
    ) -> list[Node]:
        """Collect the reference plus every unassigned node above threshold."""
        similar = [reference]
        reference_threshold = self.threshold_for(reference)

        for candidate in nodes:
            if candidate.id in processed or candidate.id == reference.id:
                continue

            effective = max(reference_threshold, self.threshold_for(candidate))
            if self.similarity_engine.meets_threshold(reference, candidate, effective):
                similar.append(candidate)

        return similar

    def _create_group(self, number: int, members: list[Node]) -> NodeGroup:
        matrix = self.similarity_matrix(members)
        return NodeGroup(
            id=f"group_{number}",
            pattern=label_pattern(members),
            nodes=members,
            features=extract_features(members),
            variations=self.variation_analyzer.identify_variations(members),
            representative=members[self._find_representative(matrix)].id,
            avg_internal_similarity=self._average_similarity(matrix),
        )

    def similarity_matrix(self, nodes: list[Node]) -> np.ndarray:
        """Pairwise similarity matrix with ones on the diagonal."""
        n = len(nodes)
        matrix = np.zeros((n, n))

        for i in range(n):
            matrix[i, i] = 1.0
            for j in range(i + 1, n):
                score = self.similarity_engine.similarity(nodes[i], nodes[j])
                matrix[i, j] = score
                matrix[j, i] = score

        return matrix

    def _average_similarity(self, matrix: np.ndarray) -> float:
        """Mean of the off-diagonal pairwise similarities."""
        n = matrix.shape[0]
        if n < 2:
            return 1.0
        upper = matrix[np.triu_indices(n, k=1)]
        return float(upper.mean())

    def _find_representative(self, matrix: np.ndarray) -> int:
        """Index of the member with the highest mean similarity to the others."""
        n = matrix.shape[0]
        if n < 2:
            return 0
        means = (matrix.sum(axis=1) - 1.0) / (n - 1)
        return int(np.argmax(means))


def group_similar_nodes(
    nodes: list[Node], config: GroupingConfig | None = None
) -> list[NodeGroup]:
    """Group a flat node list with default or given settings."""
    return GreedyClustering(config).group(nodes).groups


def flatten_nodes(root: Node) -> list[Node]:
    """Pre-order list of a node and all its descendants."""
    nodes: list[Node] = []
    stack = [root]
    while stack:
        node = stack.pop()
        nodes.append(node)
        stack.extend(reversed(node.children))
    return nodes


def group_similar_nodes_from_tree(
    root: Node | None, config: GroupingConfig | None = None
) -> list[NodeGroup]:
    """Flatten an embedded tree in pre-order and group its nodes."""
    if root is None:
        return []
    return group_similar_nodes(flatten_nodes(root), config)
