"""
Forest export

Serializes the colored forest to the shape the rendering layer consumes:
a list of roots, each with entity_id, source, color and nested children.
Files are written as canonical JSON (RFC 8785), so equal forests give equal
bytes and equal content hashes.
"""
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from conntree.hash_utils import HashUtils, JCS
from conntree.logger import get_logger
from conntree.models import TreeNode
from conntree.timestamps import TimestampUtils

logger = get_logger(__name__)

EXPORT_FORMAT_VERSION = "1.0"


def node_to_dict(node: TreeNode) -> Dict[str, Any]:
    """Nested dict for one subtree, built without recursion."""
    root_out: Dict[str, Any] = {}
    stack = [(node, root_out)]
    while stack:
        current, out = stack.pop()
        out["entity_id"] = current.entity_id
        out["source"] = current.source
        out["color"] = current.color
        out["children"] = []
        for child in current.children:
            child_out: Dict[str, Any] = {}
            out["children"].append(child_out)
            stack.append((child, child_out))
    return root_out


def forest_to_dict(roots: Iterable[TreeNode]) -> List[Dict[str, Any]]:
    return [node_to_dict(root) for root in roots]


def build_export_document(
    roots: Iterable[TreeNode],
    metadata: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """Export document with the forest and a content hash over it."""
    forest = forest_to_dict(roots)
    document_metadata = dict(metadata or {})
    document_metadata["format_version"] = EXPORT_FORMAT_VERSION
    document_metadata["forest_sha256"] = HashUtils.sha256_jcs(forest)
    return {"metadata": document_metadata, "forest": forest}


def export_forest_json(
    roots: Iterable[TreeNode],
    output_path: Path,
    metadata: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """Write the export document to `output_path` and return its metadata."""
    document = build_export_document(roots, metadata)
    document["metadata"].setdefault("exported_at_utc", TimestampUtils.now_utc())

    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w", encoding="utf-8") as f:
        f.write(JCS.canonicalize(document))

    logger.info(f"Wrote forest with {len(document['forest'])} roots to {output_path}")
    return document["metadata"]
