"""
fixity: per-directory integrity manifests.

Records a content digest for every file in a tree, detects additions,
deletions and modifications, and enforces a policy on what may change.
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
