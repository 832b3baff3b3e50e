"""Exact-signature component detection.

Nodes are bucketed by structural signature; every bucket with at least two
members is a candidate component. A candidate is then dropped when all of
its members sit directly under nodes belonging to a different candidate,
so the repeated buttons inside a repeated card are not reported alongside
the card itself. Surviving groups are labelled C1, C2, ... in discovery
order.
"""

from dataclasses import dataclass, field
from typing import Any

from ..config import DetectionConfig
from ..inspector_logging import LogCategory, get_category_logger
from ..models import Node
from ..timing import timed
from ..tree import ChildrenById, NodeAttrsById, TreeStore
from .signature import SignatureBuilder

logger = get_category_logger(LogCategory.DETECTION)


@dataclass
class SuppressedCandidate:
    """A raw candidate dropped by hierarchy suppression."""

    signature: str
    node_ids: list[str] = field(default_factory=list)
    # Member id -> raw candidate label of its parent
    covered_by: dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "signature": self.signature,
            "node_ids": self.node_ids,
            "covered_by": self.covered_by,
        }


@dataclass
class ExactDetectionResult:
    """Labelled component groups found by signature matching."""

    components: dict[str, list[str]] = field(default_factory=dict)
    signatures: dict[str, str] = field(default_factory=dict)  # label -> signature
    suppressed: list[SuppressedCandidate] = field(default_factory=list)
    total_nodes: int = 0

    def __len__(self) -> int:
        return len(self.components)

    @property
    def component_count(self) -> int:
        return len(self.components)

    def label_for(self, node_id: str) -> str | None:
        """Return the label of the group a node is a member of, if any."""
        for label, node_ids in self.components.items():
            if node_id in node_ids:
                return label
        return None

    def as_dict(self) -> dict[str, list[str]]:
        """Ordered label -> member ids mapping."""
        return {label: list(ids) for label, ids in self.components.items()}

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "components": self.as_dict(),
            "signatures": dict(self.signatures),
            "suppressed": [s.to_dict() for s in self.suppressed],
            "total_nodes": self.total_nodes,
        }


class ExactSignatureDetector:
    """Groups structurally identical subtrees and suppresses nested matches."""

    def __init__(self, config: DetectionConfig | None = None):
        self.config = config or DetectionConfig()

    @timed("exact_detection")
    def detect(self, store: TreeStore) -> ExactDetectionResult:
        """Detect repeated components in a tree.

        Args:
            store: Flattened tree to analyze.

        Returns:
            ExactDetectionResult with sequentially labelled groups.
        """
        result = ExactDetectionResult(total_nodes=len(store))
        if len(store) == 0:
            return result

        builder = SignatureBuilder(store)
        buckets: dict[str, list[str]] = {}
        for node_id in store.ids():
            signature = builder.signature(node_id)
            if signature is None:
                continue
            buckets.setdefault(signature, []).append(node_id)

        candidates = [
            (signature, node_ids)
            for signature, node_ids in buckets.items()
            if len(node_ids) >= self.config.min_group_size
        ]
        logger.debug(
            f"Built {len(buckets)} signature buckets, {len(candidates)} candidates",
            extra={"node_count": len(store), "group_count": len(candidates)},
        )

        # Each node falls in exactly one bucket, hence at most one candidate
        candidate_of: dict[str, int] = {}
        for index, (_, node_ids) in enumerate(candidates):
            for node_id in node_ids:
                candidate_of[node_id] = index

        survivors: list[tuple[str, list[str]]] = []
        for index, (signature, node_ids) in enumerate(candidates):
            covered = self._covered_members(store, index, node_ids, candidate_of)
            if len(covered) == len(node_ids):
                logger.debug(
                    f"Suppressing candidate {self.config.label_prefix}{index + 1} ({signature}): "
                    f"all {len(node_ids)} members sit inside other components"
                )
                result.suppressed.append(
                    SuppressedCandidate(
                        signature=signature,
                        node_ids=list(node_ids),
                        covered_by=covered,
                    )
                )
            else:
                survivors.append((signature, node_ids))

        prefix = self.config.label_prefix
        for number, (signature, node_ids) in enumerate(survivors, start=1):
            label = f"{prefix}{number}"
            result.components[label] = list(node_ids)
            result.signatures[label] = signature

        logger.debug(
            f"Detected {len(result.components)} components "
            f"({len(result.suppressed)} suppressed)",
            extra={"group_count": len(result.components)},
        )
        return result

    def _covered_members(
        self,
        store: TreeStore,
        index: int,
        node_ids: list[str],
        candidate_of: dict[str, int],
    ) -> dict[str, str]:
        """Map each member whose parent belongs to another candidate to its raw label."""
        member_set = set(node_ids)
        covered: dict[str, str] = {}
        for node_id in node_ids:
            parent_id = store.parent_of(node_id)
            if parent_id is None or parent_id in member_set:
                continue
            parent_candidate = candidate_of.get(parent_id)
            if parent_candidate is not None and parent_candidate != index:
                covered[node_id] = f"{self.config.label_prefix}{parent_candidate + 1}"
        return covered


def detect_components(
    nodes: NodeAttrsById,
    children: ChildrenById,
    config: DetectionConfig | None = None,
) -> dict[str, list[str]]:
    """Detect components from flattened maps.

    The maps may come from a live, momentarily inconsistent snapshot, so
    dangling child references are dropped with a warning instead of failing.

    Returns:
        Ordered mapping of labels (C1, C2, ...) to member node ids.
    """
    store = TreeStore.from_maps(nodes, children, strict=False)
    return ExactSignatureDetector(config).detect(store).as_dict()


def detect_components_in_tree(
    root: Node | None, config: DetectionConfig | None = None
) -> dict[str, list[str]]:
    """Flatten an embedded tree and detect its components."""
    return ExactSignatureDetector(config).detect(TreeStore.flatten(root)).as_dict()
