"""
Unit tests for pointer handling: drag versus click, double-click and
coordinate conversion in both display modes.
"""
import unittest

from lineup_overlay.errors import InputError
from lineup_overlay.models import Session
from lineup_overlay.services.drag_controller import (
    DragController,
    PitchRect,
    PointerOutcome,
    PointerPhase
)
from lineup_overlay.services.override_store import OverrideStore
from lineup_overlay.services.scheduler import ManualScheduler

SURFACE = PitchRect(left=0.0, top=0.0, width=1000.0, height=1000.0)


class DragControllerTests(unittest.TestCase):
    def setUp(self) -> None:
        self.session = Session()
        self.store = OverrideStore(self.session)
        self.scheduler = ManualScheduler()
        self.clicks = []
        self.double_clicks = []
        self.drag_ends = []
        self.controller = DragController(
            self.session,
            self.store,
            self.scheduler,
            on_click=lambda team, seat: self.clicks.append((team, seat)),
            on_double_click=lambda team, seat: self.double_clicks.append((team, seat)),
            on_drag_end=lambda team, seat: self.drag_ends.append((team, seat)),
        )

    def _press(self, team: str = "A", seat: int = 5, pointer_id: int = 1,
               x: float = 500.0, y: float = 500.0) -> None:
        self.controller.pointer_down(team, seat, pointer_id, x, y, x, y, SURFACE)

    def test_small_movement_is_a_click(self) -> None:
        self._press()
        self.assertFalse(self.controller.pointer_move("A", 1, 502.0, 502.0))
        outcome = self.controller.pointer_up("A", 1, 503.0, 500.0)

        self.assertEqual(outcome, PointerOutcome.CLICK_PENDING)
        self.assertEqual(self.session.team("A").overrides, {})
        self.assertEqual(self.clicks, [])

        self.scheduler.advance(0.2)
        self.assertEqual(self.clicks, [])
        self.scheduler.advance(0.1)
        self.assertEqual(self.clicks, [("A", 5)])
        self.assertEqual(self.drag_ends, [])

    def test_threshold_displacement_starts_drag(self) -> None:
        self._press()
        self.assertTrue(self.controller.pointer_move("A", 1, 506.0, 500.0))
        self.assertEqual(self.controller.phase("A"), PointerPhase.DRAGGING)
        self.assertAlmostEqual(self.store.get("A", 5).x, 50.6)
        self.assertAlmostEqual(self.store.get("A", 5).y, 50.0)

        outcome = self.controller.pointer_up("A", 1, 600.0, 400.0)
        self.assertEqual(outcome, PointerOutcome.DRAG)
        self.assertAlmostEqual(self.store.get("A", 5).x, 60.0)
        self.assertAlmostEqual(self.store.get("A", 5).y, 40.0)
        self.assertEqual(self.drag_ends, [("A", 5)])

        self.scheduler.advance(1.0)
        self.assertEqual(self.clicks, [])

    def test_release_point_counts_as_final_move(self) -> None:
        self._press()
        outcome = self.controller.pointer_up("A", 1, 520.0, 500.0)
        self.assertEqual(outcome, PointerOutcome.DRAG)
        self.assertIsNotNone(self.store.get("A", 5))

    def test_many_small_moves_never_write(self) -> None:
        self._press()
        for step in range(5):
            self.controller.pointer_move("A", 1, 500.0 + step, 501.0)
        self.controller.pointer_up("A", 1, 504.0, 502.0)
        self.assertEqual(self.session.team("A").overrides, {})
        self.scheduler.advance(0.25)
        self.assertEqual(self.clicks, [("A", 5)])

    def test_grab_offset_is_preserved(self) -> None:
        self.controller.pointer_down("A", 2, 1, 500.0, 500.0, 510.0, 505.0, SURFACE)
        self.controller.pointer_move("A", 1, 600.0, 600.0)
        self.assertAlmostEqual(self.store.get("A", 2).x, 61.0)
        self.assertAlmostEqual(self.store.get("A", 2).y, 60.5)

    def test_drag_clamps_to_pitch(self) -> None:
        self._press()
        self.controller.pointer_move("A", 1, -300.0, 1500.0)
        position = self.store.get("A", 5)
        self.assertEqual((position.x, position.y), (0.0, 100.0))

    def test_second_click_becomes_double_click(self) -> None:
        self._press()
        self.controller.pointer_up("A", 1, 500.0, 500.0)
        self.scheduler.advance(0.1)
        self._press(pointer_id=2)
        outcome = self.controller.pointer_up("A", 2, 500.0, 500.0)

        self.assertEqual(outcome, PointerOutcome.DOUBLE_CLICK)
        self.assertEqual(self.double_clicks, [("A", 5)])
        self.scheduler.advance(1.0)
        self.assertEqual(self.clicks, [])

    def test_native_double_click_cancels_pending_click(self) -> None:
        self._press()
        self.controller.pointer_up("A", 1, 500.0, 500.0)
        self.assertTrue(self.controller.has_pending_click("A"))

        self.assertEqual(self.controller.double_click("A", 5), PointerOutcome.DOUBLE_CLICK)
        self.assertFalse(self.controller.has_pending_click("A"))
        self.scheduler.advance(1.0)
        self.assertEqual(self.clicks, [])
        self.assertEqual(self.double_clicks, [("A", 5)])

    def test_cancel_emits_no_click(self) -> None:
        self._press()
        self.assertEqual(self.controller.pointer_cancel("A", 1), PointerOutcome.CANCELLED)
        self.assertEqual(self.controller.phase("A"), PointerPhase.IDLE)
        self.scheduler.advance(1.0)
        self.assertEqual(self.clicks, [])

    def test_other_pointer_is_ignored(self) -> None:
        self._press(pointer_id=1)
        self.assertFalse(self.controller.pointer_move("A", 9, 900.0, 900.0))
        self.assertEqual(self.controller.pointer_up("A", 9, 900.0, 900.0), PointerOutcome.IGNORED)
        self.assertEqual(self.session.team("A").overrides, {})

    def test_teams_track_independently(self) -> None:
        self._press(team="A", seat=1, pointer_id=1)
        self._press(team="B", seat=2, pointer_id=2)
        self.controller.pointer_move("A", 1, 700.0, 500.0)
        self.controller.pointer_move("B", 2, 300.0, 500.0)

        self.assertAlmostEqual(self.store.get("A", 1).x, 70.0)
        self.assertAlmostEqual(self.store.get("B", 2).x, 30.0)
        self.assertIsNone(self.store.get("A", 2))

    def test_vertical_mode_stores_split_coordinates(self) -> None:
        self.session.vertical_mode = True
        self._press(team="B", seat=0)
        self.controller.pointer_move("B", 1, 500.0, 530.0)
        position = self.store.get("B", 0)
        self.assertAlmostEqual(position.x, 50.0)
        self.assertAlmostEqual(position.y, 90.0)

    def test_unknown_seat_rejected(self) -> None:
        with self.assertRaises(InputError):
            self._press(seat=11)
        with self.assertRaises(InputError):
            self._press(team="C")

    def test_reset_drops_pending_clicks(self) -> None:
        self._press()
        self.controller.pointer_up("A", 1, 500.0, 500.0)
        self.controller.reset()
        self.scheduler.advance(1.0)
        self.assertEqual(self.clicks, [])


class PitchRectTests(unittest.TestCase):
    def test_to_percent(self) -> None:
        rect = PitchRect(left=100.0, top=50.0, width=400.0, height=200.0)
        position = rect.to_percent(300.0, 100.0)
        self.assertAlmostEqual(position.x, 50.0)
        self.assertAlmostEqual(position.y, 25.0)

    def test_from_dict_rejects_missing_fields(self) -> None:
        with self.assertRaises(InputError):
            PitchRect.from_dict({"left": 0, "top": 0, "width": 10})

    def test_zero_size_rejected(self) -> None:
        with self.assertRaises(InputError):
            PitchRect(left=0.0, top=0.0, width=0.0, height=10.0).to_percent(1.0, 1.0)


if __name__ == '__main__':
    unittest.main()
