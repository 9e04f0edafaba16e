"""
Configuration for the connection forest pipeline.

All configs are plain dataclasses that can be loaded from YAML. The color
mapping is configuration, never derived from data.
"""
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from conntree.errors import ConfigError
from conntree.logger import get_logger
from conntree.models import CyclePolicy, IterationOrder

logger = get_logger(__name__)


# ===| CONSTANTS |===

DEFAULT_CATEGORY_COLORS: Dict[str, str] = {
    "link": "#2196F3",        # Blue
    "playmarket": "#9E9E9E",  # Grey
}
DEFAULT_COLOR = "#9E9E9E"


def _load_yaml_mapping(path: Path) -> Dict[str, Any]:
    with path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Expected YAML top-level mapping (dict) in {path}, got {type(data).__name__}")
    return data


# ===| FOREST |===

@dataclass
class ForestConfig:
    """How parents are inferred and colors resolved."""
    category_colors: Dict[str, str] = field(
        default_factory=lambda: dict(DEFAULT_CATEGORY_COLORS)
    )
    default_color: str = DEFAULT_COLOR

    # "input" keeps the entity list order, "ascending_id" sorts by identifier.
    # Decides which side wins when two users added each other first.
    iteration_order: IterationOrder = IterationOrder.INPUT

    # "mutual" only guards two-node cycles; "ancestor" guards cycles of any length
    cycle_policy: CyclePolicy = CyclePolicy.MUTUAL

    def __post_init__(self):
        try:
            self.iteration_order = IterationOrder(self.iteration_order)
        except ValueError as e:
            raise ConfigError(f"Unknown iteration order: {self.iteration_order!r}") from e
        try:
            self.cycle_policy = CyclePolicy(self.cycle_policy)
        except ValueError as e:
            raise ConfigError(f"Unknown cycle policy: {self.cycle_policy!r}") from e

        if not isinstance(self.default_color, str) or not self.default_color:
            raise ConfigError("default_color must be a non-empty string")
        if not isinstance(self.category_colors, dict):
            raise ConfigError("category_colors must be a mapping of category to color")
        for category, color in self.category_colors.items():
            if not isinstance(category, str) or not isinstance(color, str) or not color:
                raise ConfigError(f"Invalid category color entry: {category!r} -> {color!r}")

    @classmethod
    def from_yaml(cls, path: Path) -> "ForestConfig":
        """Load configuration from YAML file."""
        if not path.exists():
            logger.warning(f"Forest config not found at {path}, using defaults")
            return cls()

        data = _load_yaml_mapping(path)
        return cls.from_dict(data.get("forest_config", data))

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ForestConfig":
        """Create from dictionary."""
        return cls(
            category_colors=data.get("category_colors", dict(DEFAULT_CATEGORY_COLORS)),
            default_color=data.get("default_color", DEFAULT_COLOR),
            iteration_order=data.get("iteration_order", IterationOrder.INPUT),
            cycle_policy=data.get("cycle_policy", CyclePolicy.MUTUAL),
        )


# ===| SNAPSHOT |===

@dataclass(slots=True)
class SnapshotMapping:
    """JSON pointers and field names locating users and friendships in a snapshot."""
    entities_path: str = "/users"
    entity_id_field: str = "user_id"
    entity_source_field: str = "source"

    relations_path: str = "/friendships"
    relation_actor_field: str = "user_id"
    relation_target_field: str = "friend_id"
    relation_created_field: str = "created_at"

    @classmethod
    def from_yaml(cls, path: Path) -> "SnapshotMapping":
        """Load and validate snapshot mapping from YAML file."""
        data = _load_yaml_mapping(path)
        return cls.from_dict(data.get("snapshot_mapping", data))

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SnapshotMapping":
        """Create from dictionary."""
        defaults = cls()
        return cls(
            entities_path=data.get("entities_path", defaults.entities_path),
            entity_id_field=data.get("entity_id_field", defaults.entity_id_field),
            entity_source_field=data.get("entity_source_field", defaults.entity_source_field),
            relations_path=data.get("relations_path", defaults.relations_path),
            relation_actor_field=data.get("relation_actor_field", defaults.relation_actor_field),
            relation_target_field=data.get("relation_target_field", defaults.relation_target_field),
            relation_created_field=data.get("relation_created_field", defaults.relation_created_field),
        )


# ===| PIPELINE |===

@dataclass
class ForestPipelineConfig:
    """Configuration for the end-to-end forest pipeline."""
    input_file_path: Optional[Path] = None
    output_file_path: Optional[Path] = None
    forest_config_path: Optional[Path] = None
    snapshot_mapping_path: Optional[Path] = None

    # When no input file is given, a synthetic layered snapshot is generated
    synthetic_root_count: int = 5
    synthetic_layers: int = 4
    synthetic_seed: Optional[int] = None
