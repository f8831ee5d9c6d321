"""Supabase implementation of the meal template store."""

from dataclasses import dataclass

from supabase import Client

from macro_ledger.adapters.supabase_food_store import escape_like
from macro_ledger.domain.meals import MealTemplate
from macro_ledger.services.aggregator import MealTemplateStore


@dataclass
class SupabaseMealTemplateRepository(MealTemplateStore):
    """Supabase-backed meal templates with items stored as a JSON array."""

    client: Client

    def get_template(self, name: str) -> MealTemplate | None:
        """Return a template by case-insensitive name, if present."""
        response = (
            self.client.table("meal_templates")
            .select("*")
            .ilike("name", escape_like(name.strip()))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        row = response.data[0]
        items = row.get("items") or []
        return MealTemplate(
            name=str(row.get("name", "")),
            items=tuple(str(item) for item in items),
        )
