import unittest

from src.core.models import Card, Comic, ContainerWithZone, ReconciliationResult, YearBreakdown, Zone

class TestItemModels(unittest.TestCase):
    def test_quantity_defaults_to_one(self):
        for raw in (None, "", "abc", 0, -3):
            card = Card(id="c", user_id="u", quantity=raw)
            self.assertEqual(card.quantity, 1)
        self.assertEqual(Card(id="c", user_id="u", quantity="4").quantity, 4)

    def test_numbers_are_optional(self):
        card = Card(id="c", user_id="u", grade="", price=None, cost="12.5")
        self.assertIsNone(card.grade)
        self.assertIsNone(card.price)
        self.assertEqual(card.cost, 12.5)

    def test_zero_grade_is_kept(self):
        self.assertEqual(Card(id="c", user_id="u", grade=0).grade, 0)

    def test_card_number_and_rookie_parsing(self):
        card = Card(id="c", user_id="u", number=7.0, number_out_of="99", is_rookie="Yes")
        self.assertEqual(card.number, "7")
        self.assertEqual(card.number_display, "7/99")
        self.assertTrue(card.is_rookie)
        self.assertFalse(Card(id="c", user_id="u", is_rookie="No").is_rookie)
        self.assertTrue(Card(id="c", user_id="u", is_rookie=True).is_rookie)

    def test_numeric_text_cells_become_strings(self):
        comic = Comic(id="m", user_id="u", title=1984, publisher="DC", issue="3")
        self.assertEqual(comic.title, "1984")
        self.assertEqual(comic.issue, 3)

    def test_blank_optional_text_is_none(self):
        card = Card(id="c", user_id="u", team="  ", condition="", description=" mint ")
        self.assertIsNone(card.team)
        self.assertIsNone(card.condition)
        self.assertEqual(card.description, "mint")

    def test_record_data_excludes_identity_and_container(self):
        card = Card(id="c", user_id="u", player="Mantle", container_id="box")
        data = card.record_data()
        for key in ("id", "user_id", "container", "item_type", "created_at", "updated_at"):
            self.assertNotIn(key, data)
        self.assertEqual(data["container_id"], "box")
        self.assertEqual(data["player"], "Mantle")

    def test_container_without_zone_shows_unknown_zone(self):
        container = ContainerWithZone(id="b", name="Box", user_id="u", zone_id="gone")
        self.assertEqual(container.zone_name, "Unknown Zone")
        zoned = ContainerWithZone(id="b", name="Box", user_id="u", zone=Zone(id="z", name="Attic", user_id="u"))
        self.assertEqual(zoned.zone_name, "Attic")

    def test_year_breakdown_label(self):
        self.assertEqual(YearBreakdown(year=-1).label, "Unknown")
        self.assertEqual(YearBreakdown(year=1952).label, "1952")

class TestReconciliationResult(unittest.TestCase):
    def test_classification(self):
        result = ReconciliationResult()
        self.assertTrue(result.failed)
        self.assertFalse(result.needs_refresh)

        result.cards_created = 1
        self.assertTrue(result.success)
        self.assertFalse(result.partial)

        result.add_error(3, "card", "boom")
        self.assertFalse(result.success)
        self.assertTrue(result.partial)
        self.assertTrue(result.needs_refresh)

    def test_errors_only_is_failure(self):
        result = ReconciliationResult()
        result.add_error(2, "comic", "bad")
        self.assertTrue(result.failed)
        self.assertFalse(result.partial)
        self.assertEqual(result.processed, 0)

if __name__ == '__main__':
    unittest.main()
