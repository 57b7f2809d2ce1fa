"""Tests for the app factory."""

import os
import unittest
from unittest.mock import patch

from skatehubba import create_app


class AppConfigTestCase(unittest.TestCase):
    """Test case for configuration loading."""

    def test_defaults(self):
        """Without environment overrides the documented defaults apply."""
        with patch.dict(os.environ, {}, clear=True):
            app = create_app({"TESTING": True})
        self.assertEqual(app.config["SKATE_QUEUE_SCAN_LIMIT"], 10)
        self.assertFalse(app.config["SKATE_ROLE_SWAP_ON_LAND"])
        self.assertEqual(app.config["SKATE_MAX_VIDEO_BYTES"], 100 * 1024 * 1024)
        self.assertEqual(app.config["SKATE_MAX_VIDEO_DURATION_MS"], 60_000)
        self.assertEqual(app.config["SKATE_UPLOAD_CHUNK_SIZE"], 1024 * 1024)

    def test_environment_overrides(self):
        """SKATE_* environment variables are parsed."""
        env_vars = {
            "SKATE_QUEUE_SCAN_LIMIT": "25",
            "SKATE_ROLE_SWAP_ON_LAND": "True",
            "SKATE_MAX_VIDEO_BYTES": "1048576",
        }
        with patch.dict(os.environ, env_vars):
            app = create_app({"TESTING": True})
        self.assertEqual(app.config["SKATE_QUEUE_SCAN_LIMIT"], 25)
        self.assertTrue(app.config["SKATE_ROLE_SWAP_ON_LAND"])
        self.assertEqual(app.config["SKATE_MAX_VIDEO_BYTES"], 1048576)
        self.assertEqual(app.config["MAX_CONTENT_LENGTH"], 2 * 1048576)

    def test_empty_env_vars_fall_back(self):
        """Empty environment variables fall back to default values."""
        with patch.dict(os.environ, {"SKATE_QUEUE_SCAN_LIMIT": ""}):
            app = create_app({"TESTING": True})
        self.assertEqual(app.config["SKATE_QUEUE_SCAN_LIMIT"], 10)

    def test_chunk_size_must_align(self):
        """Resumable upload chunks must be a multiple of 256 KiB."""
        with self.assertRaises(ValueError):
            create_app({"TESTING": True, "SKATE_UPLOAD_CHUNK_SIZE": 1000})

    @patch("skatehubba.init_firebase")
    def test_firebase_skipped_when_testing(self, mock_init):
        """Firebase is only initialized outside of tests."""
        create_app({"TESTING": True})
        mock_init.assert_not_called()
        create_app()
        mock_init.assert_called_once()

    def test_404_is_json(self):
        """Unknown routes get the JSON error body."""
        app = create_app({"TESTING": True})
        with app.test_client() as client:
            response = client.get("/api/nowhere")
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.get_json()["code"], "NOT_FOUND")
        self.assertFalse(response.get_json()["success"])

    def test_forwarded_headers_are_trusted(self):
        """The app sits behind one proxy hop."""
        app = create_app({"TESTING": True})

        @app.route("/whoami")
        def whoami():
            from flask import request

            return f"{request.scheme} {request.remote_addr}"

        with app.test_client() as client:
            response = client.get(
                "/whoami",
                headers={"X-Forwarded-Proto": "https", "X-Forwarded-For": "203.0.113.7"},
            )
        self.assertEqual(response.data.decode(), "https 203.0.113.7")


if __name__ == "__main__":
    unittest.main()
