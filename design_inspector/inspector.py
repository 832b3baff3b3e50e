"""Pattern inspector orchestrating both detection pipelines.

Coordinates:
- Tree flattening and validation
- Exact-signature component detection
- Fuzzy similarity grouping with features and variations

Every call works on a full tree snapshot and returns fresh results;
nothing is cached between calls.
"""

from dataclasses import dataclass
from typing import Any

from .config import InspectorConfig
from .detection.exact import ExactDetectionResult, ExactSignatureDetector
from .inspector_logging import get_logger
from .models import Node
from .similarity.clustering import GreedyClustering, GroupingResult, flatten_nodes
from .similarity.engine import SimilarityEngine, SimilarityResult
from .similarity.variations import VariantPalette, VariationAnalyzer
from .timing import PerformanceTimer, timed
from .tree import ChildrenById, NodeAttrsById, TreeStore

logger = get_logger()


@dataclass
class InspectionResult:
    """Complete result of inspecting one tree snapshot."""

    detection: ExactDetectionResult
    grouping: GroupingResult
    node_count: int = 0
    execution_time_ms: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "node_count": self.node_count,
            "detection": self.detection.to_dict(),
            "grouping": self.grouping.to_dict(),
            "execution_time_ms": self.execution_time_ms,
        }

    @property
    def summary(self) -> str:
        """Generate brief summary of results."""
        patterns: dict[str, int] = {}
        for group in self.grouping.groups:
            patterns[group.pattern] = patterns.get(group.pattern, 0) + 1
        pattern_text = ", ".join(
            f"{count} {pattern}" for pattern, count in patterns.items()
        )
        return (
            f"Inspected {self.node_count} nodes. "
            f"Found {self.detection.component_count} exact components "
            f"and {self.grouping.group_count} similarity groups"
            + (f" ({pattern_text})." if pattern_text else ".")
        )


class PatternInspector:
    """Runs exact detection and similarity grouping over node trees."""

    def __init__(self, config: InspectorConfig | None = None):
        """Initialize the inspector.

        Args:
            config: Optional configuration. Defaults are used when omitted.
        """
        self.config = config or InspectorConfig()
        palette = VariantPalette.from_mapping(
            self.config.palette, default=self.config.default_variant
        )
        self.similarity_engine = SimilarityEngine(self.config.grouping)
        self.detector = ExactSignatureDetector(self.config.detection)
        self.clustering = GreedyClustering(
            config=self.config.grouping,
            similarity_engine=self.similarity_engine,
            variation_analyzer=VariationAnalyzer(
                palette=palette,
                badge_size_ratio=self.config.grouping.badge_size_ratio,
            ),
        )

    def build_store(self, root: Node | None) -> TreeStore:
        """Flatten a tree, failing fast on duplicate ids or cycles."""
        return TreeStore.flatten(root)

    def detect(self, root: Node | TreeStore | None) -> ExactDetectionResult:
        """Run exact-signature detection on a tree or an existing store."""
        store = root if isinstance(root, TreeStore) else self.build_store(root)
        return self.detector.detect(store)

    def detect_maps(
        self, nodes: NodeAttrsById, children: ChildrenById
    ) -> ExactDetectionResult:
        """Run exact-signature detection on externally flattened maps.

        With strict_validation off, dangling child references are dropped
        with a warning instead of raising.
        """
        store = TreeStore.from_maps(
            nodes, children, strict=self.config.strict_validation
        )
        return self.detector.detect(store)

    def group(self, root: Node | None) -> GroupingResult:
        """Run similarity grouping on every node of a tree in pre-order."""
        if root is None:
            return GroupingResult()
        self.build_store(root)
        return self.clustering.group(flatten_nodes(root))

    def compare(self, node1: Node, node2: Node) -> SimilarityResult:
        """Score two nodes with the configured weights."""
        return self.similarity_engine.compute_similarity(node1, node2)

    @timed("inspect")
    def inspect(self, root: Node | None) -> InspectionResult:
        """Run both pipelines on one tree snapshot.

        Args:
            root: Root of the tree, or None for an empty tree.

        Returns:
            InspectionResult with detection and grouping output.

        Raises:
            TreeValidationError: If the tree has duplicate ids or a cycle.
        """
        with PerformanceTimer("inspect", auto_log=False) as timer:
            store = self.build_store(root)
            detection = self.detector.detect(store)
            grouping = (
                self.clustering.group(flatten_nodes(root))
                if root is not None
                else GroupingResult()
            )

        result = InspectionResult(
            detection=detection,
            grouping=grouping,
            node_count=len(store),
            execution_time_ms=timer.duration_ms,
        )
        logger.info(result.summary)
        return result
