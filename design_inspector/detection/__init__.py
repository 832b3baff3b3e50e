"""Exact-signature component detection package.

This package builds structural signatures for tree nodes and groups
structurally identical subtrees into labelled components.
"""

from .exact import (
    ExactDetectionResult,
    ExactSignatureDetector,
    SuppressedCandidate,
    detect_components,
    detect_components_in_tree,
)
from .signature import SignatureBuilder, node_signature, shallow_signature

__all__ = [
    # Signatures
    "SignatureBuilder",
    "node_signature",
    "shallow_signature",
    # Detection
    "ExactDetectionResult",
    "ExactSignatureDetector",
    "SuppressedCandidate",
    "detect_components",
    "detect_components_in_tree",
]
