"""Tests for structlog configuration and the mirrored log file."""

from unittest.mock import patch

import structlog

from markcraft.logging import _MirroredStream, configure_logging


class TestMirroredStream:
    def test_writes_to_stdout_and_file(self, tmp_path, capsys):
        path = tmp_path / "worker.log"
        stream = _MirroredStream(str(path))

        stream.write('{"event": "worker_started"}\n')
        stream.flush()

        assert "worker_started" in capsys.readouterr().out
        assert "worker_started" in path.read_text()

    def test_unopenable_file_falls_back_to_stdout(self, tmp_path, capsys):
        stream = _MirroredStream(str(tmp_path / "missing" / "worker.log"))

        stream.write("still logged\n")

        captured = capsys.readouterr()
        assert "still logged" in captured.out
        assert "file logging disabled" in captured.err


class TestConfigureLogging:
    def teardown_method(self):
        structlog.reset_defaults()

    def test_json_renderer_outside_development(self, capsys):
        with patch("markcraft.logging.settings") as mock_settings:
            mock_settings.environment = "production"
            mock_settings.log_level = "info"
            mock_settings.log_file = ""
            configure_logging()

        structlog.get_logger().info("logo_style_accepted", style="wordmark")

        out = capsys.readouterr().out
        assert '"event": "logo_style_accepted"' in out
        assert '"style": "wordmark"' in out

    def test_level_filtering(self, capsys):
        with patch("markcraft.logging.settings") as mock_settings:
            mock_settings.environment = "production"
            mock_settings.log_level = "warning"
            mock_settings.log_file = ""
            configure_logging()

        structlog.get_logger().info("quiet_event")

        assert "quiet_event" not in capsys.readouterr().out
