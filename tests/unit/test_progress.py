from __future__ import annotations

from unittest.mock import Mock, patch

from roster_import.services.progress import ProgressTracker, is_tty_enabled


def test_is_tty_enabled_returns_stdout_isatty():
    with patch("sys.stdout.isatty", return_value=True):
        assert is_tty_enabled() is True
    with patch("sys.stdout.isatty", return_value=False):
        assert is_tty_enabled() is False


class TestProgressTracker:

    def test_init_with_tty_enabled(self):
        with patch("roster_import.services.progress.is_tty_enabled", return_value=True), \
             patch("roster_import.services.progress.tqdm") as mock_tqdm:
            tracker = ProgressTracker(5, description="Checking")

            assert tracker.enabled is True
            mock_tqdm.assert_called_once_with(
                total=5,
                desc="Checking",
                unit="row",
                disable=False,
                leave=False,
                position=0,
                ncols=80,
                ascii=True,
            )

    def test_init_with_tty_disabled(self):
        with patch("roster_import.services.progress.is_tty_enabled", return_value=False):
            tracker = ProgressTracker(5)
            assert tracker.enabled is False
            assert tracker.pbar is None

    def test_advance_updates_bar(self):
        mock_pbar = Mock()
        with patch("roster_import.services.progress.is_tty_enabled", return_value=True), \
             patch("roster_import.services.progress.tqdm", return_value=mock_pbar):
            tracker = ProgressTracker(3)
            tracker.advance()
            tracker.advance()
            tracker.set_postfix(invalid=1)

            assert tracker.current_row == 2
            assert mock_pbar.update.call_count == 2
            mock_pbar.set_postfix.assert_called_once_with(invalid=1)

    def test_advance_without_tty(self):
        with patch("roster_import.services.progress.is_tty_enabled", return_value=False):
            tracker = ProgressTracker(3)
            tracker.advance()
            tracker.set_postfix(invalid=0)
            assert tracker.current_row == 1

    def test_context_manager_closes(self):
        mock_pbar = Mock()
        with patch("roster_import.services.progress.is_tty_enabled", return_value=True), \
             patch("roster_import.services.progress.tqdm", return_value=mock_pbar):
            with ProgressTracker(3) as tracker:
                assert isinstance(tracker, ProgressTracker)
            mock_pbar.close.assert_called_once()
            assert tracker.pbar is None
