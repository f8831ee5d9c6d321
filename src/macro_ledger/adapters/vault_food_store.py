"""Food records stored as markdown notes with YAML frontmatter."""

import logging
from dataclasses import dataclass
from pathlib import Path

import frontmatter
import yaml

from macro_ledger.domain.nutrition import FoodRecord
from macro_ledger.services.parser import parse_grams
from macro_ledger.services.resolver import FoodContentStore

_logger = logging.getLogger(__name__)


@dataclass
class VaultFoodStore(FoodContentStore):
    """Reads one food per note in the vault's storage folder.

    The note name is the canonical food name. Frontmatter carries
    ``serving_size`` (for example ``100g``), ``calories``, ``protein``,
    ``fat`` and ``carbs`` for that serving.
    """

    root: Path
    storage_folder: str = "Nutrition"

    @classmethod
    def create(cls, vault_path: str, storage_folder: str) -> "VaultFoodStore":
        return cls(
            root=Path(vault_path).expanduser().resolve(),
            storage_folder=storage_folder,
        )

    def list_food_records(self) -> list[FoodRecord]:
        folder = self.root / self.storage_folder
        if not folder.is_dir():
            _logger.warning("Food storage folder %s does not exist", folder)
            return []
        records: list[FoodRecord] = []
        for path in sorted(folder.rglob("*.md")):
            try:
                post = frontmatter.load(path)
            except (OSError, UnicodeDecodeError, yaml.YAMLError):
                _logger.exception("Failed to read food note %s", path)
                continue
            records.append(parse_food_note(path.stem, post.metadata or {}))
        return records

    def find_by_name(self, query: str) -> list[FoodRecord]:
        lowered = query.strip().lower()
        return [
            record
            for record in self.list_food_records()
            if lowered in record.canonical_name.lower()
        ]


def parse_food_note(name: str, metadata: dict[str, object]) -> FoodRecord:
    """Build a record from note frontmatter.

    A serving size without a gram unit yields a zero base serving, which the
    resolver treats as a malformed record.
    """
    return FoodRecord(
        canonical_name=name,
        base_serving_grams=parse_serving_size(metadata.get("serving_size")),
        calories_per_serving=_number(metadata.get("calories")),
        protein_per_serving=_number(metadata.get("protein")),
        fat_per_serving=_number(metadata.get("fat")),
        carbs_per_serving=_number(metadata.get("carbs")),
    )


def parse_serving_size(value: object) -> float:
    if not isinstance(value, str) or "g" not in value.lower():
        return 0.0
    return parse_grams(value) or 0.0


def _number(value: object) -> float:
    if isinstance(value, bool):
        return 0.0
    if isinstance(value, int | float):
        return float(value)
    if isinstance(value, str):
        return parse_grams(value) or 0.0
    return 0.0
