"""
Integration tests for the engine wiring built by ServiceFactory.
"""
import unittest

from lineup_overlay.config import OverlayConfig
from lineup_overlay.models import FieldPosition
from lineup_overlay.services import ManualScheduler, MemorySink, ServiceFactory

from tests.test_match_feed import FakeFeedClient, snapshot


class ServiceFactoryTests(unittest.TestCase):
    def setUp(self) -> None:
        self.scheduler = ManualScheduler()
        self.feed_client = FakeFeedClient()
        self.extra = MemorySink()
        self.engine = ServiceFactory(OverlayConfig()).create_engine(
            self.scheduler, feed_client=self.feed_client, extra_sinks=[self.extra]
        )

    def test_editor_changes_reach_every_sink(self) -> None:
        self.engine.editor.set_score("A", 1)
        self.engine.editor.set_score("A", 2)
        self.scheduler.advance(0.1)
        self.assertEqual(self.engine.publisher.emission_count, 1)
        self.assertEqual(self.engine.memory_sink.latest["match"]["scoreA"], 2)
        self.assertEqual(self.extra.latest["match"]["scoreA"], 2)

    def test_reset_layout_broadcasts_even_without_content_change(self) -> None:
        self.engine.override_store.set("A", 2, FieldPosition(x=5.0, y=5.0))
        self.engine.editor.reset_layout("A")
        self.scheduler.advance(0.1)
        self.assertEqual(self.engine.publisher.emission_count, 1)

    def test_feed_load_broadcasts(self) -> None:
        self.feed_client.default = snapshot(home_goals=2)
        self.engine.feed.load_fixture("12345")
        self.scheduler.run_pending()
        self.assertEqual(self.engine.memory_sink.latest["match"]["teamA"]["name"], "Liverpool")
        self.assertEqual(self.engine.memory_sink.latest["match"]["scoreA"], 2)

    def test_apply_snapshot_clears_selection_and_broadcasts(self) -> None:
        self.engine.editor.select_seat("A", 3)
        applied = self.engine.apply_snapshot({"overridesB": {"0": {"x": 10, "y": 10}}})
        self.assertEqual(applied, ["overridesB"])
        self.assertIsNone(self.engine.editor.selected["A"])
        self.scheduler.advance(0.1)
        self.assertEqual(self.engine.memory_sink.latest["teams"]["B"][0]["x"], 10.0)

    def test_state_dict(self) -> None:
        state = self.engine.state_dict()
        self.assertEqual(state["feedState"], "idle")
        self.assertIsNone(state["liveFeed"])
        self.assertEqual(state["broadcastCount"], 0)
        self.assertIn("teamNameA", state["session"])

    def test_shutdown_stops_everything(self) -> None:
        self.feed_client.default = snapshot()
        self.engine.feed.load_fixture("12345")
        self.engine.editor.set_score("B", 1)
        self.engine.shutdown()
        self.scheduler.advance(60.0)
        self.assertEqual(len(self.feed_client.calls), 1)
        self.assertIsNone(self.engine.session.live_binding)


if __name__ == '__main__':
    unittest.main()
