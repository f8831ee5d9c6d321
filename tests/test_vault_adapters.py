"""Tests for the filesystem vault adapters."""

import asyncio
from pathlib import Path

import pytest

from macro_ledger.adapters.vault_document_store import VaultDocumentStore
from macro_ledger.adapters.vault_food_store import VaultFoodStore, parse_serving_size
from macro_ledger.adapters.vault_meal_template_store import (
    VaultMealTemplateStore,
    parse_templates,
)
from macro_ledger.domain.meals import MealTemplate
from macro_ledger.domain.nutrition import FoodRecord
from tests.conftest import ledger_document


def _write(root: Path, relative: str, content: str) -> None:
    path = root / relative
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


def test_document_store_lists_markdown_outside_dot_folders(tmp_path: Path) -> None:
    _write(tmp_path, "b.md", "b")
    _write(tmp_path, "daily/a.md", "a")
    _write(tmp_path, ".macros-backups/2024-01-01/a.md", "old")
    _write(tmp_path, "notes.txt", "ignored")
    store = VaultDocumentStore.create(str(tmp_path))

    assert asyncio.run(store.list_all_documents()) == ["b.md", "daily/a.md"]


def test_document_store_reads_and_replaces_ledger_block(tmp_path: Path) -> None:
    _write(tmp_path, "daily/2024-01-01.md", ledger_document("2024-01-01", "Apple:10g", "", "  Banana  "))
    store = VaultDocumentStore.create(str(tmp_path))

    assert asyncio.run(store.read_ledger_block("2024-01-01")) == ["Apple:10g", "Banana"]
    assert asyncio.run(store.write_ledger_block("2024-01-01", ["Oats:40g"])) is True
    assert asyncio.run(store.read_ledger_block("2024-01-01")) == ["Oats:40g"]
    assert asyncio.run(store.read_ledger_block("2024-01-02")) == []
    assert asyncio.run(store.write_ledger_block("2024-01-02", ["x"])) is False


def test_document_store_writes_create_parent_folders(tmp_path: Path) -> None:
    store = VaultDocumentStore.create(str(tmp_path))

    asyncio.run(store.write_document(".macros-backups/2024-01-01/daily/a.md", "copy"))

    assert (tmp_path / ".macros-backups/2024-01-01/daily/a.md").read_text() == "copy"


def test_document_store_rejects_paths_outside_vault(tmp_path: Path) -> None:
    store = VaultDocumentStore.create(str(tmp_path / "vault"))

    with pytest.raises(ValueError):
        asyncio.run(store.read_document("../secret.md"))


def test_food_store_reads_frontmatter(tmp_path: Path) -> None:
    _write(
        tmp_path,
        "Nutrition/Apple.md",
        "---\nserving_size: 100g\ncalories: 52\nprotein: 0.3\nfat: 0.2\ncarbs: 14\n---\nCrunchy.\n",
    )
    _write(tmp_path, "Nutrition/Mystery.md", "---\nserving_size: 1 cup\ncalories: 10\n---\n")
    store = VaultFoodStore.create(str(tmp_path), "Nutrition")

    records = store.list_food_records()

    assert records == [
        FoodRecord("Apple", 100.0, 52.0, 0.3, 0.2, 14.0),
        FoodRecord("Mystery", 0.0, 10.0, 0.0, 0.0, 0.0),
    ]
    assert [record.canonical_name for record in store.find_by_name("app")] == ["Apple"]


def test_food_store_without_folder_is_empty(tmp_path: Path) -> None:
    assert VaultFoodStore.create(str(tmp_path), "Nutrition").list_food_records() == []


@pytest.mark.parametrize(
    ("value", "expected"),
    [("100g", 100.0), ("30 g", 30.0), ("1 cup", 0.0), (100, 0.0), (None, 0.0)],
)
def test_parse_serving_size(value: object, expected: float) -> None:
    assert parse_serving_size(value) == expected


def test_meal_template_store_mapping_shape(tmp_path: Path) -> None:
    _write(tmp_path, "meal_templates.yaml", "Porridge:\n  - Oats:40g\n  - Milk:200g\n")
    store = VaultMealTemplateStore.create(str(tmp_path), "meal_templates.yaml")

    assert store.get_template("porridge") == MealTemplate(
        name="Porridge", items=("Oats:40g", "Milk:200g")
    )
    assert store.get_template("Lunch") is None


def test_meal_template_list_shape_skips_malformed_entries() -> None:
    templates = parse_templates(
        [
            {"name": "Snack", "items": ["Banana"]},
            {"name": "Broken", "items": "Banana"},
            "nonsense",
        ]
    )

    assert templates == [MealTemplate(name="Snack", items=("Banana",))]


def test_missing_template_file_has_no_templates(tmp_path: Path) -> None:
    store = VaultMealTemplateStore.create(str(tmp_path), "meal_templates.yaml")

    assert store.get_template("Porridge") is None
