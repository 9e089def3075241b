"""File-backed storage for the best variant found by a search."""

from datetime import datetime
from pathlib import Path

import structlog
import yaml

from bandit_gi.domain.models import Patch
from bandit_gi.domain.ports.collaborators import VariantStore

logger = structlog.get_logger(__name__)


class YamlVariantStore(VariantStore):
    """Writes the best patch as a YAML document.

    The program source itself is owned by the mutation engine, so the
    document records the edits needed to reproduce the variant.
    """

    def __init__(self, output_dir: str | Path):
        self.output_dir = Path(output_dir)

    def save(self, patch: Patch, fitness: int, experiment_id: str) -> Path:
        self.output_dir.mkdir(parents=True, exist_ok=True)
        path = self.output_dir / f"{experiment_id}.optimised.yaml"
        document = {
            "experiment_id": experiment_id,
            "fitness": int(fitness),
            "saved_at": datetime.now().isoformat(timespec="seconds"),
            "patch": str(patch),
            "edits": [
                {"operator": edit.operator.name, "description": edit.description}
                for edit in patch.edits
            ],
        }
        with open(path, "w", encoding="utf-8") as f:
            yaml.safe_dump(document, f, sort_keys=False)
        logger.info("best_variant_saved", path=str(path), fitness=fitness, edits=len(patch))
        return path

    @staticmethod
    def load(path: str | Path) -> dict:
        with open(path, encoding="utf-8") as f:
            return yaml.safe_load(f) or {}
