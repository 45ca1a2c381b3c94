from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

from catalog_sync.services.progress import ProgressTracker, is_tty_enabled


def test_is_tty_enabled_returns_stdout_isatty():
    with patch("sys.stdout.isatty", return_value=True):
        assert is_tty_enabled() is True
    with patch("sys.stdout.isatty", return_value=False):
        assert is_tty_enabled() is False


class TestProgressTracker:
    def test_init_with_tty_enabled(self):
        with patch("catalog_sync.services.progress.is_tty_enabled", return_value=True), \
             patch("catalog_sync.services.progress.tqdm") as mock_tqdm:
            tracker = ProgressTracker(3, description="Writing")
            assert tracker.enabled is True
            assert tracker.current_file == 0
            mock_tqdm.assert_called_once_with(
                total=3,
                desc="Writing",
                unit="file",
                leave=True,
                position=0,
                ncols=80,
                ascii=True,
            )

    def test_disabled_without_tty(self):
        with patch("catalog_sync.services.progress.is_tty_enabled", return_value=False), \
             patch("catalog_sync.services.progress.tqdm") as mock_tqdm:
            tracker = ProgressTracker(3)
            assert tracker.enabled is False
            assert tracker.pbar is None
            mock_tqdm.assert_not_called()
            tracker.start_file(Path("en.json"))
            tracker.finish_file()
            tracker.close()
            assert tracker.current_file == 1

    def test_disabled_without_files(self):
        with patch("catalog_sync.services.progress.is_tty_enabled", return_value=True), \
             patch("catalog_sync.services.progress.tqdm") as mock_tqdm:
            assert ProgressTracker(0).enabled is False
            mock_tqdm.assert_not_called()

    def test_updates_and_closes_bar(self):
        with patch("catalog_sync.services.progress.is_tty_enabled", return_value=True), \
             patch("catalog_sync.services.progress.tqdm") as mock_tqdm:
            pbar = mock_tqdm.return_value
            with ProgressTracker(2, description="Writing") as tracker:
                tracker.start_file(Path("locales/de.json"))
                pbar.set_description.assert_called_with("Writing (de.json)")
                tracker.finish_file()
                pbar.update.assert_called_once_with(1)
                pbar.set_description.assert_called_with("Writing")
            pbar.close.assert_called_once()
            assert tracker.pbar is None
