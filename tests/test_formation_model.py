"""
Unit tests for Formation model functionality.

Tests FieldPosition, Formation validation, feed formation-string parsing
and the preset templates.
"""
import unittest

from lineup_overlay.errors import InputError
from lineup_overlay.models.formation import (
    FieldPosition,
    Formation,
    FormationTemplates,
    clamp_percent,
    default_formation,
    formation_name_from_lines,
    parse_formation_string
)


class TestFieldPosition(unittest.TestCase):
    """Test FieldPosition model."""

    def test_clamped_limits_both_axes(self) -> None:
        position = FieldPosition(x=-5.0, y=130.0).clamped()
        self.assertEqual(position, FieldPosition(x=0.0, y=100.0))

    def test_serialization(self) -> None:
        position = FieldPosition(x=12.5, y=80.0)
        self.assertEqual(position.to_dict(), {"x": 12.5, "y": 80.0})
        self.assertEqual(FieldPosition.from_dict({"x": "12.5", "y": 80}), position)

    def test_clamp_percent(self) -> None:
        self.assertEqual(clamp_percent(50), 50.0)
        self.assertEqual(clamp_percent(101), 100.0)
        self.assertEqual(clamp_percent(-0.1), 0.0)


class TestFormation(unittest.TestCase):
    """Test Formation structure rules."""

    def test_seat_count_is_sum_of_lines(self) -> None:
        formation = Formation(name="4-2-3-1", lines=(1, 4, 2, 3, 1))
        self.assertEqual(formation.seat_count, 11)
        self.assertEqual(formation.line_count, 5)

    def test_lists_are_normalised_to_tuples(self) -> None:
        formation = Formation(name="4-4-2", lines=[1, 4, 4, 2])
        self.assertEqual(formation.lines, (1, 4, 4, 2))

    def test_validate_rejects_bad_structures(self) -> None:
        bad = [
            Formation(name="only-keeper", lines=(1,)),
            Formation(name="two-keepers", lines=(2, 4, 4)),
            Formation(name="empty-line", lines=(1, 4, 0, 3)),
            Formation(name="negative", lines=(1, -4, 4)),
        ]
        for formation in bad:
            with self.subTest(formation=formation.name):
                with self.assertRaises(InputError):
                    formation.validate()
                self.assertFalse(formation.is_valid())

    def test_small_sided_formation_is_valid(self) -> None:
        formation = Formation(name="2-1", lines=(1, 2, 1))
        formation.validate()
        self.assertEqual(formation.seat_count, 4)

    def test_from_dict_validates_and_names(self) -> None:
        formation = Formation.from_dict({"lines": [1, 3, 5, 2]})
        self.assertEqual(formation.name, "3-5-2")
        with self.assertRaises(InputError):
            Formation.from_dict({"name": "bad", "lines": [1]})
        with self.assertRaises(InputError):
            Formation.from_dict({"name": "bad", "lines": "1-4-4-2"})

    def test_round_trip(self) -> None:
        formation = Formation(name="4-3-3", lines=(1, 4, 3, 3))
        self.assertEqual(Formation.from_dict(formation.to_dict()), formation)


class TestFormationParsing(unittest.TestCase):
    """Test parsing of feed formation strings."""

    def test_parse_prefixes_goalkeeper(self) -> None:
        formation = parse_formation_string("4-2-3-1")
        self.assertEqual(formation.name, "4-2-3-1")
        self.assertEqual(formation.lines, (1, 4, 2, 3, 1))

    def test_parse_accepts_other_separators(self) -> None:
        self.assertEqual(parse_formation_string("3 4 3").lines, (1, 3, 4, 3))

    def test_parse_falls_back_to_default(self) -> None:
        for text in (None, "", "---", "4-0-3"):
            with self.subTest(text=text):
                self.assertEqual(parse_formation_string(text), default_formation())

    def test_name_from_lines_skips_goalkeeper(self) -> None:
        self.assertEqual(formation_name_from_lines([1, 5, 3, 2]), "5-3-2")


class TestFormationTemplates(unittest.TestCase):
    """Test the preset formations."""

    def test_all_presets_are_valid_elevens(self) -> None:
        templates = FormationTemplates.get_all_templates()
        self.assertGreaterEqual(len(templates), 4)
        for formation in templates:
            with self.subTest(formation=formation.name):
                formation.validate()
                self.assertEqual(formation.seat_count, 11)

    def test_lookup_by_name(self) -> None:
        self.assertEqual(FormationTemplates.get_template_by_name("4-4-2").lines, (1, 4, 4, 2))
        self.assertIsNone(FormationTemplates.get_template_by_name("2-2-2-2-2"))


if __name__ == '__main__':
    unittest.main()
