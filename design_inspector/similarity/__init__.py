"""Fuzzy similarity grouping package.

This package scores node pairs across structure, layout, style and
content, clusters nodes greedily, and describes each cluster by its
common features and variations.
"""

from .clustering import (
    GreedyClustering,
    GroupingResult,
    NodeGroup,
    flatten_nodes,
    group_similar_nodes,
    group_similar_nodes_from_tree,
)
from .engine import SimilarityEngine, SimilarityResult, has_icon
from .features import (
    ChildTypeInfo,
    DimensionRange,
    Features,
    PositionPattern,
    StructureSignature,
    extract_features,
    structure_signature,
    tree_depth,
)
from .variations import (
    VariantPalette,
    Variation,
    VariationAnalyzer,
    label_pattern,
)

__all__ = [
    # Engine
    "SimilarityEngine",
    "SimilarityResult",
    "has_icon",
    # Features
    "ChildTypeInfo",
    "DimensionRange",
    "Features",
    "PositionPattern",
    "StructureSignature",
    "extract_features",
    "structure_signature",
    "tree_depth",
    # Clustering
    "GreedyClustering",
    "GroupingResult",
    "NodeGroup",
    "flatten_nodes",
    "group_similar_nodes",
    "group_similar_nodes_from_tree",
    # Variations
    "VariantPalette",
    "Variation",
    "VariationAnalyzer",
    "label_pattern",
]
