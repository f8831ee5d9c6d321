"""Meal templates kept in a YAML file inside the vault."""

import logging
from dataclasses import dataclass
from pathlib import Path

import yaml

from macro_ledger.domain.meals import MealTemplate
from macro_ledger.services.aggregator import MealTemplateStore

_logger = logging.getLogger(__name__)


@dataclass
class VaultMealTemplateStore(MealTemplateStore):
    """Loads templates from either of two YAML shapes.

    A mapping of meal name to item lines::

        Breakfast:
          - Oats:50g
          - Milk:200g

    or a list of ``{name, items}`` objects.
    """

    path: Path

    @classmethod
    def create(cls, vault_path: str, templates_file: str) -> "VaultMealTemplateStore":
        return cls(path=Path(vault_path).expanduser().resolve() / templates_file)

    def get_template(self, name: str) -> MealTemplate | None:
        lowered = name.strip().lower()
        for template in self.list_templates():
            if template.name.lower() == lowered:
                return template
        return None

    def list_templates(self) -> list[MealTemplate]:
        if not self.path.exists():
            return []
        with self.path.open("r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle) or {}
        return parse_templates(data)


def parse_templates(data: object) -> list[MealTemplate]:
    """Normalize either YAML shape into templates, skipping bad entries."""
    if isinstance(data, dict):
        pairs = list(data.items())
    elif isinstance(data, list):
        pairs = [
            (entry.get("name"), entry.get("items"))
            for entry in data
            if isinstance(entry, dict)
        ]
    else:
        _logger.warning("Unsupported meal template document: %r", type(data))
        return []

    templates = []
    for name, items in pairs:
        if not name or not isinstance(items, list):
            _logger.warning("Skipping malformed meal template %r", name)
            continue
        templates.append(
            MealTemplate(
                name=str(name).strip(),
                items=tuple(str(item).strip() for item in items if str(item).strip()),
            )
        )
    return templates
