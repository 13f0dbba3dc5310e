import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import io
import unittest
from contextlib import redirect_stdout
from unittest.mock import patch

import redis

import main


class TestMain(unittest.TestCase):
    def test_no_command_prints_help(self):
        with redirect_stdout(io.StringIO()) as out:
            self.assertEqual(main.main([]), 1)
        self.assertIn("aggregator", out.getvalue())

    @patch("main.uvicorn.run")
    @patch("main.RedisChannelSubscription")
    def test_aggregator_aborts_when_channel_unreachable(self, mock_subscription_cls, mock_run):
        mock_subscription_cls.return_value.connect.side_effect = redis.ConnectionError("refused")

        self.assertEqual(main.main(["aggregator"]), 1)
        mock_run.assert_not_called()

    @patch("main.uvicorn.run")
    @patch("main.RedisChannelSubscription")
    def test_aggregator_reports_bind_failure(self, mock_subscription_cls, mock_run):
        mock_run.side_effect = SystemExit(1)

        self.assertEqual(main.main(["aggregator"]), 1)
        mock_subscription_cls.return_value.disconnect.assert_called_once()

    @patch("main.signal.signal")
    @patch("main.RedisChannelPublisher")
    def test_publisher_aborts_when_redis_unreachable(self, mock_publisher_cls, mock_signal):
        mock_publisher_cls.side_effect = redis.ConnectionError("refused")
        self.assertEqual(main.main(["publish", "--rounds", "1"]), 1)

    @patch("main.signal.signal")
    @patch("main.HttpAuthorizationGate")
    @patch("main.RedisChannelSubscription")
    def test_watch_denied(self, mock_subscription_cls, mock_gate_cls, mock_signal):
        mock_gate_cls.return_value.is_authorized.return_value = False

        with redirect_stdout(io.StringIO()) as out:
            self.assertEqual(main.main(["watch", "mallory@example.com"]), 2)
        self.assertIn("Access denied", out.getvalue())
        mock_subscription_cls.return_value.connect.assert_not_called()


if __name__ == '__main__':
    unittest.main()
