"""
Loads an immutable snapshot of users and friendships from a JSON or YAML file.

Where the lists live inside the document, and what their fields are called,
is described by a SnapshotMapping (RFC 6901 JSON pointers plus field names).
"""
import json
from datetime import date, datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from jsonpointer import JsonPointerException, resolve_pointer
import yaml

from conntree.config import SnapshotMapping
from conntree.errors import SnapshotFormatError
from conntree.hash_utils import HashUtils
from conntree.logger import get_logger
from conntree.models import Entity, Relation, Snapshot

logger = get_logger(__name__)

YAML_SUFFIXES = {".yaml", ".yml"}


class JSONPointer:
    """RFC 6901 JSON Pointer lookups (wrapper around python-json-pointer)."""

    @staticmethod
    def resolve(pointer: str, document: Any) -> Any:
        if not pointer:
            return document
        if not pointer.startswith("/"):
            raise SnapshotFormatError(f"Invalid JSON pointer: {pointer}")

        try:
            return resolve_pointer(document, pointer)
        except JsonPointerException as e:
            raise SnapshotFormatError(f"Pointer {pointer} not found in snapshot: {e}") from e


def _require_int(record: Dict[str, Any], field_name: str, where: str) -> int:
    if field_name not in record:
        raise SnapshotFormatError(f"{where}: missing field '{field_name}'")
    value = record[field_name]
    # bool is an int subclass but never a valid identifier
    if isinstance(value, bool) or not isinstance(value, int):
        raise SnapshotFormatError(f"{where}: field '{field_name}' must be an integer, got {value!r}")
    return value


def _require_list(value: Any, pointer: str) -> List[Any]:
    if not isinstance(value, list):
        raise SnapshotFormatError(f"Expected a list at {pointer or '/'}, got {type(value).__name__}")
    return value


def parse_entities(records: List[Any], mapping: SnapshotMapping) -> List[Entity]:
    entities: List[Entity] = []
    for i, record in enumerate(records):
        where = f"user #{i}"
        if not isinstance(record, dict):
            raise SnapshotFormatError(f"{where}: expected an object, got {type(record).__name__}")
        source = record.get(mapping.entity_source_field)
        if source is not None and not isinstance(source, str):
            raise SnapshotFormatError(f"{where}: field '{mapping.entity_source_field}' must be a string")
        entities.append(Entity(
            entity_id=_require_int(record, mapping.entity_id_field, where),
            source=source or None,
        ))
    return entities


def parse_relations(records: List[Any], mapping: SnapshotMapping) -> List[Relation]:
    relations: List[Relation] = []
    for i, record in enumerate(records):
        where = f"friendship #{i}"
        if not isinstance(record, dict):
            raise SnapshotFormatError(f"{where}: expected an object, got {type(record).__name__}")
        if mapping.relation_created_field not in record:
            raise SnapshotFormatError(f"{where}: missing field '{mapping.relation_created_field}'")
        created_at = record[mapping.relation_created_field]
        if isinstance(created_at, (datetime, date)):
            # YAML decodes unquoted dates and timestamps itself
            created_at = created_at.isoformat()
        relations.append(Relation(
            actor_id=_require_int(record, mapping.relation_actor_field, where),
            target_id=_require_int(record, mapping.relation_target_field, where),
            # Parsed later by the builder, which rejects malformed values
            created_at=created_at,
        ))
    return relations


def snapshot_from_document(document: Any, mapping: Optional[SnapshotMapping] = None) -> Snapshot:
    """Map an already-decoded document to a Snapshot."""
    mapping = mapping or SnapshotMapping()
    users = _require_list(JSONPointer.resolve(mapping.entities_path, document), mapping.entities_path)
    friendships = _require_list(JSONPointer.resolve(mapping.relations_path, document), mapping.relations_path)
    return Snapshot(
        entities=parse_entities(users, mapping),
        relations=parse_relations(friendships, mapping),
    )


def load_snapshot(path: Path, mapping: Optional[SnapshotMapping] = None) -> Snapshot:
    """Load a snapshot file; YAML for .yaml/.yml, JSON otherwise."""
    logger.info(f"Loading snapshot {path} (sha256 {HashUtils.sha256_file(path)[:12]})")
    with open(path, "r", encoding="utf-8") as f:
        if path.suffix.lower() in YAML_SUFFIXES:
            document = yaml.safe_load(f)
        else:
            document = json.load(f)

    snapshot = snapshot_from_document(document, mapping)
    logger.info(f"Loaded {len(snapshot.entities)} users and {len(snapshot.relations)} friendships")
    return snapshot
