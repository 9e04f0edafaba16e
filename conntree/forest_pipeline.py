"""
Connection forest pipeline.

Loads a snapshot of users and friendships, infers one parent per user from the
earliest friendship, colors every tree from its users' declared sources, and
exports the forest as canonical JSON for the rendering layer.
"""
from argparse import ArgumentParser
from pathlib import Path
from typing import Any, Dict, Optional

from conntree.config import ForestConfig, ForestPipelineConfig, SnapshotMapping
from conntree.forest_builder import ForestBuilder
from conntree.forest_export import export_forest_json
from conntree.forest_stats import compute_forest_stats, log_forest_stats
from conntree.hash_utils import HashUtils
from conntree.logger import get_logger
from conntree.models import CyclePolicy, Forest, IterationOrder, Snapshot
from conntree.propagation import propagate
from conntree.snapshot import load_snapshot
from conntree.synthetic import generate_layered_snapshot
from conntree.timestamps import TimestampUtils

logger = get_logger(__name__)


def snapshot_fingerprint(snapshot: Snapshot) -> str:
    """Content hash of a snapshot, independent of the file it came from."""
    return HashUtils.sha256_jcs({
        "users": [[e.entity_id, e.source] for e in snapshot.entities],
        "friendships": [[r.actor_id, r.target_id, r.created_at] for r in snapshot.relations],
    })


def build_colored_forest(snapshot: Snapshot, forest_config: ForestConfig) -> Forest:
    """Build the forest, then propagate colors over it."""
    builder = ForestBuilder(
        iteration_order=forest_config.iteration_order,
        cycle_policy=forest_config.cycle_policy,
    )
    forest = builder.build_forest(snapshot.entities, snapshot.relations)
    propagate(forest.roots, forest_config.category_colors, forest_config.default_color)
    return forest


class ForestPipeline:
    """Snapshot in, colored forest and statistics out."""

    def __init__(
        self,
        config: ForestPipelineConfig,
        forest_config: Optional[ForestConfig] = None,
        snapshot_mapping: Optional[SnapshotMapping] = None,
    ):
        self.config = config

        if forest_config is not None:
            self.forest_config = forest_config
        elif config.forest_config_path is not None:
            self.forest_config = ForestConfig.from_yaml(config.forest_config_path)
        else:
            self.forest_config = ForestConfig()

        if snapshot_mapping is not None:
            self.snapshot_mapping = snapshot_mapping
        elif config.snapshot_mapping_path is not None:
            self.snapshot_mapping = SnapshotMapping.from_yaml(config.snapshot_mapping_path)
        else:
            self.snapshot_mapping = SnapshotMapping()

        self.forest: Optional[Forest] = None
        self.started_at_utc = TimestampUtils.now_utc()

    def load(self) -> Snapshot:
        if self.config.input_file_path is not None:
            return load_snapshot(self.config.input_file_path, self.snapshot_mapping)

        logger.info(
            f"No input given, generating synthetic snapshot "
            f"({self.config.synthetic_root_count} roots, {self.config.synthetic_layers} layers, "
            f"seed={self.config.synthetic_seed})"
        )
        return generate_layered_snapshot(
            root_count=self.config.synthetic_root_count,
            layers=self.config.synthetic_layers,
            seed=self.config.synthetic_seed,
        )

    def run(self) -> Dict[str, Any]:
        """Execute the pipeline. Returns statistics."""
        logger.info("Starting connection forest pipeline")
        stats: Dict[str, Any] = {
            "started_at_utc": self.started_at_utc,
            "iteration_order": str(self.forest_config.iteration_order),
            "cycle_policy": str(self.forest_config.cycle_policy),
        }

        try:
            snapshot = self.load()
            stats["snapshot_sha256"] = snapshot_fingerprint(snapshot)
            stats["user_count"] = len(snapshot.entities)
            stats["friendship_count"] = len(snapshot.relations)

            self.forest = build_colored_forest(snapshot, self.forest_config)

            forest_stats = compute_forest_stats(self.forest)
            log_forest_stats(forest_stats)
            stats["forest"] = forest_stats.to_dict()

            if self.config.output_file_path is not None:
                export_metadata = export_forest_json(
                    self.forest.roots,
                    self.config.output_file_path,
                    metadata={
                        "snapshot_sha256": stats["snapshot_sha256"],
                        "iteration_order": stats["iteration_order"],
                        "cycle_policy": stats["cycle_policy"],
                        "default_color": self.forest_config.default_color,
                        "category_colors": dict(self.forest_config.category_colors),
                    },
                )
                stats["forest_sha256"] = export_metadata["forest_sha256"]
                stats["output_file_path"] = str(self.config.output_file_path)

            stats["completed_at_utc"] = TimestampUtils.now_utc()
            stats["success"] = True
            logger.info("Connection forest pipeline completed successfully")

        except Exception as e:
            logger.error(f"Connection forest pipeline failed: {e}")
            stats["success"] = False
            stats["error"] = str(e)
            raise

        return stats


def run_pipeline(
    input_file_path: Optional[Path],
    output_file_path: Optional[Path],
    forest_config_path: Optional[Path] = None,
    snapshot_mapping_path: Optional[Path] = None,
    forest_config: Optional[ForestConfig] = None,
    synthetic_seed: Optional[int] = None,
) -> Dict[str, Any]:
    config = ForestPipelineConfig(
        input_file_path=input_file_path,
        output_file_path=output_file_path,
        forest_config_path=forest_config_path,
        snapshot_mapping_path=snapshot_mapping_path,
        synthetic_seed=synthetic_seed,
    )
    return ForestPipeline(config, forest_config=forest_config).run()


def main(argv=None) -> int:
    parser = ArgumentParser(description="Build a colored connection forest from users and friendships.")
    parser.add_argument(
        "--input",
        type=Path,
        default=None,
        help="Snapshot file (.json, .yaml, .yml)",
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=Path("data/output/forest.json"),
        help="Where to write the exported forest (default: data/output/forest.json)",
    )
    parser.add_argument(
        "--forest-config",
        type=Path,
        default=Path("data/metadata/forest_config.yaml"),
        help="Path to forest_config.yaml",
    )
    parser.add_argument(
        "--snapshot-mapping",
        type=Path,
        default=None,
        help="Path to snapshot_mapping.yaml (default: users/friendships layout)",
    )
    parser.add_argument(
        "--iteration-order",
        type=str,
        choices=[o.value for o in IterationOrder],
        default=None,
        help="Override the entity iteration order from the config",
    )
    parser.add_argument(
        "--cycle-policy",
        type=str,
        choices=[p.value for p in CyclePolicy],
        default=None,
        help="Override the cycle policy from the config",
    )
    parser.add_argument(
        "--synthetic",
        action="store_true",
        help="Generate a synthetic layered snapshot instead of reading --input",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Seed for the synthetic snapshot",
    )

    args = parser.parse_args(argv)
    if args.input is None and not args.synthetic:
        parser.error("either --input or --synthetic is required")

    forest_config = ForestConfig.from_yaml(args.forest_config)
    if args.iteration_order:
        forest_config.iteration_order = IterationOrder(args.iteration_order)
    if args.cycle_policy:
        forest_config.cycle_policy = CyclePolicy(args.cycle_policy)

    stats = run_pipeline(
        input_file_path=None if args.synthetic else args.input,
        output_file_path=args.output,
        snapshot_mapping_path=args.snapshot_mapping,
        forest_config=forest_config,
        synthetic_seed=args.seed,
    )

    logger.info("\n=== Forest Summary ===")
    logger.info(f"Success: {stats.get('success', False)}")
    logger.info(f"Users: {stats.get('user_count', 0)}")
    logger.info(f"Roots: {stats['forest']['root_count']}")
    logger.info(f"Max depth: {stats['forest']['max_depth']}")
    logger.info(f"Output: {stats.get('output_file_path')}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
