"""
Unit tests for broadcast payload assembly and the debounced publisher.
"""
import unittest
from unittest.mock import MagicMock

from lineup_overlay.models import FieldPosition, Session, TeamLogo
from lineup_overlay.services.broadcast import (
    BroadcastPublisher,
    HttpPostSink,
    MemorySink,
    build_payload
)
from lineup_overlay.services.scheduler import ManualScheduler


class FailingSink:
    def send(self, payload) -> None:
        raise ConnectionError("renderer offline")


class BuildPayloadTests(unittest.TestCase):
    def setUp(self) -> None:
        self.session = Session()

    def test_payload_shape(self) -> None:
        self.session.team_a.name = "Arsenal"
        self.session.team_a.score = 2
        self.session.elapsed = 67
        payload = build_payload(self.session)

        self.assertIn("timestamp", payload)
        self.assertFalse(payload["verticalMode"])
        self.assertEqual(payload["match"]["scoreA"], 2)
        self.assertEqual(payload["match"]["scoreB"], 0)
        self.assertEqual(payload["match"]["clock"], "67'")
        self.assertEqual(payload["match"]["teamA"]["name"], "Arsenal")
        self.assertEqual(payload["match"]["teamA"]["formation"]["lines"], [1, 4, 3, 3])
        self.assertEqual(len(payload["teams"]["A"]), 11)
        self.assertEqual(len(payload["teams"]["B"]), 11)

        seat = payload["teams"]["A"][0]
        self.assertEqual(seat["id"], "A-0")
        self.assertEqual(seat["index"], 0)
        self.assertEqual((seat["x"], seat["y"]), (50.0, 90.0))
        self.assertEqual(seat["name"], "Player 1")
        self.assertFalse(seat["yellowCard"])

    def test_overrides_are_resolved_and_rounded(self) -> None:
        self.session.team_b.overrides[4] = FieldPosition(x=12.3456, y=65.4321)
        seat = build_payload(self.session)["teams"]["B"][4]
        self.assertEqual((seat["x"], seat["y"]), (12.35, 65.43))

    def test_vertical_mode_projects_positions(self) -> None:
        self.session.vertical_mode = True
        payload = build_payload(self.session)
        goalkeeper_a = payload["teams"]["A"][0]
        goalkeeper_b = payload["teams"]["B"][0]
        self.assertEqual(goalkeeper_a["y"], 47.0)
        self.assertEqual(goalkeeper_b["y"], 53.0)
        self.assertTrue(payload["verticalMode"])


class BroadcastPublisherTests(unittest.TestCase):
    def setUp(self) -> None:
        self.session = Session()
        self.scheduler = ManualScheduler()
        self.sink = MemorySink()
        self.publisher = BroadcastPublisher(self.session, self.scheduler, [self.sink], debounce=0.1)

    def test_first_render_does_not_emit(self) -> None:
        self.assertFalse(self.publisher.observe())
        self.scheduler.advance(5.0)
        self.assertEqual(self.sink.payloads, [])
        self.assertEqual(self.publisher.emission_count, 0)

    def test_burst_coalesces_into_one_emission(self) -> None:
        for score in range(1, 6):
            self.session.team_a.score = score
            self.assertTrue(self.publisher.observe())
            self.scheduler.advance(0.01)

        self.assertEqual(self.sink.payloads, [])
        self.scheduler.advance(0.2)
        self.assertEqual(len(self.sink.payloads), 1)
        self.assertEqual(self.sink.latest["match"]["scoreA"], 5)

    def test_each_change_restarts_quiet_period(self) -> None:
        self.session.team_a.score = 1
        self.publisher.observe()
        self.scheduler.advance(0.08)
        self.session.team_a.score = 2
        self.publisher.observe()
        self.scheduler.advance(0.08)
        self.assertEqual(self.sink.payloads, [])

        self.scheduler.advance(0.05)
        self.assertEqual(len(self.sink.payloads), 1)

    def test_identity_change_flushes_on_next_tick(self) -> None:
        self.session.team_b.name = "Chelsea"
        self.publisher.observe()
        self.scheduler.run_pending()
        self.assertEqual(len(self.sink.payloads), 1)
        self.assertEqual(self.sink.latest["match"]["teamB"]["name"], "Chelsea")

    def test_pending_identity_flush_is_not_postponed(self) -> None:
        self.session.team_a.logo = TeamLogo(id="42", slug="arsenal", english_name="Arsenal")
        self.publisher.observe()
        self.session.team_a.score = 1
        self.publisher.observe()

        self.scheduler.run_pending()
        self.assertEqual(len(self.sink.payloads), 1)
        self.assertEqual(self.sink.latest["match"]["scoreA"], 1)
        self.scheduler.advance(1.0)
        self.assertEqual(len(self.sink.payloads), 1)

    def test_overrides_need_explicit_refresh(self) -> None:
        self.session.team_a.overrides[3] = FieldPosition(x=20.0, y=30.0)
        self.assertFalse(self.publisher.observe())

        self.publisher.request_refresh()
        self.assertTrue(self.publisher.pending)
        self.scheduler.advance(0.1)
        seat = self.sink.latest["teams"]["A"][3]
        self.assertEqual((seat["x"], seat["y"]), (20.0, 30.0))

    def test_flush_emits_immediately(self) -> None:
        self.session.team_a.score = 3
        self.publisher.observe()
        payload = self.publisher.flush()
        self.assertEqual(payload["match"]["scoreA"], 3)
        self.assertFalse(self.publisher.pending)
        self.scheduler.advance(1.0)
        self.assertEqual(len(self.sink.payloads), 1)

    def test_close_cancels_pending_emission(self) -> None:
        self.session.vertical_mode = True
        self.publisher.observe()
        self.publisher.close()
        self.scheduler.advance(1.0)
        self.assertEqual(self.sink.payloads, [])

    def test_failing_sink_is_logged_and_others_still_receive(self) -> None:
        publisher = BroadcastPublisher(self.session, self.scheduler, [FailingSink(), self.sink])
        self.session.team_a.score = 1
        publisher.observe()
        with self.assertLogs("lineup_overlay.services.broadcast", level="WARNING") as logs:
            self.scheduler.advance(0.1)
        self.assertEqual(len(self.sink.payloads), 1)
        self.assertIn("FailingSink", logs.output[0])


class SinkTests(unittest.TestCase):
    def test_memory_sink_keeps_recent_payloads(self) -> None:
        sink = MemorySink(keep=2)
        for i in range(3):
            sink.send({"n": i})
        self.assertEqual([p["n"] for p in sink.payloads], [1, 2])
        self.assertEqual(sink.latest, {"n": 2})

    def test_http_sink_posts_json(self) -> None:
        http = MagicMock()
        sink = HttpPostSink("http://renderer.local/overlay", timeout=1.5, session=http)
        sink.send({"verticalMode": False})
        http.post.assert_called_once_with(
            "http://renderer.local/overlay", json={"verticalMode": False}, timeout=1.5
        )
        http.post.return_value.raise_for_status.assert_called_once_with()


if __name__ == '__main__':
    unittest.main()
