"""Design pattern inspector for UI design trees.

This package finds repeated components in design-tool node trees through
two independent pipelines.

Main components:
- tree: Flattened node storage with parent and child lookups
- detection: Exact structural signatures with hierarchy suppression
- similarity: Weighted similarity scoring, greedy grouping and variations
- inspector: Orchestration of both pipelines over one tree snapshot
- config: Configuration loading and validation
"""

__version__ = "1.0.0"

from .config import (
    DetectionConfig,
    GroupingConfig,
    InspectorConfig,
    SimilarityWeights,
    load_config,
)
from .detection import (
    ExactDetectionResult,
    ExactSignatureDetector,
    SignatureBuilder,
    detect_components,
)
from .errors import (
    ConfigurationError,
    CyclicTreeError,
    DanglingChildError,
    DuplicateNodeIdError,
    InputFileError,
    InspectorError,
    NodeFormatError,
    TreeValidationError,
)
from .inspector import InspectionResult, PatternInspector
from .models import Node, NodeType, load_tree
from .similarity import (
    GreedyClustering,
    GroupingResult,
    NodeGroup,
    SimilarityEngine,
    group_similar_nodes,
)
from .tree import TreeStore, flatten, load_store

__all__ = [
    "__version__",
    # Models
    "Node",
    "NodeType",
    "load_tree",
    # Tree
    "TreeStore",
    "flatten",
    "load_store",
    # Detection
    "ExactDetectionResult",
    "ExactSignatureDetector",
    "SignatureBuilder",
    "detect_components",
    # Similarity
    "GreedyClustering",
    "GroupingResult",
    "NodeGroup",
    "SimilarityEngine",
    "group_similar_nodes",
    # Orchestration
    "InspectionResult",
    "PatternInspector",
    # Config
    "DetectionConfig",
    "GroupingConfig",
    "InspectorConfig",
    "SimilarityWeights",
    "load_config",
    # Errors
    "ConfigurationError",
    "CyclicTreeError",
    "DanglingChildError",
    "DuplicateNodeIdError",
    "InputFileError",
    "InspectorError",
    "NodeFormatError",
    "TreeValidationError",
]
