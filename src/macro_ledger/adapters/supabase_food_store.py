"""Supabase implementation of the food content store."""

from dataclasses import dataclass

from supabase import Client

from macro_ledger.domain.nutrition import FoodRecord
from macro_ledger.services.resolver import FoodContentStore

_LIKE_SPECIALS = ("\\", "%", "_")


@dataclass
class SupabaseFoodStore(FoodContentStore):
    """Supabase-backed food records."""

    client: Client

    def list_food_records(self) -> list[FoodRecord]:
        """Return every food record."""
        response = self.client.table("foods").select("*").order("name").execute()
        return [_parse_food(row) for row in response.data or []]

    def find_by_name(self, query: str) -> list[FoodRecord]:
        """Return foods whose name contains the query, ignoring case."""
        response = (
            self.client.table("foods")
            .select("*")
            .ilike("name", f"%{escape_like(query.strip())}%")
            .execute()
        )
        return [_parse_food(row) for row in response.data or []]


def escape_like(value: str) -> str:
    """Escape LIKE wildcards so the value only matches itself."""
    for special in _LIKE_SPECIALS:
        value = value.replace(special, f"\\{special}")
    return value


def _parse_food(row: dict[str, object]) -> FoodRecord:
    """Parse a food row into a domain model."""
    return FoodRecord(
        canonical_name=str(row.get("name", "")),
        base_serving_grams=float(row.get("serving_size_g") or 0.0),
        calories_per_serving=float(row.get("calories") or 0.0),
        protein_per_serving=float(row.get("protein_g") or 0.0),
        fat_per_serving=float(row.get("fat_g") or 0.0),
        carbs_per_serving=float(row.get("carbs_g") or 0.0),
    )
