"""
Tests for the bgg-collect command-line interface.
"""

import threading
from concurrent.futures import ThreadPoolExecutor
from unittest.mock import Mock, patch

import pytest

from bgg_collector.cli.main import (
    EXIT_FAILED, EXIT_INTERRUPTED, EXIT_OK, build_parser, config_from_args, main, run_until_interrupted,
)
from bgg_collector.database import GameDatabase
from bgg_collector.error_handling import PipelineAborted, ProtocolError
from bgg_collector.models import Failure, Game, PipelineResult
from bgg_collector.sinks import Sink


@pytest.fixture(autouse=True)
def no_log_files():
    with patch("bgg_collector.cli.main.setup_logging") as mock_setup:
        yield mock_setup


class InterruptOnce:
    """Future wrapper whose first result() call acts like Ctrl-C."""

    def __init__(self, future):
        self.future = future
        self.interrupted = False

    def result(self, timeout=None):
        if not self.interrupted:
            self.interrupted = True
            raise KeyboardInterrupt
        return self.future.result(timeout)


class InterruptingExecutor(ThreadPoolExecutor):
    def submit(self, fn, *args, **kwargs):
        return InterruptOnce(super().submit(fn, *args, **kwargs))


class CancellableRun:
    """Stands in for run_collection; blocks until cancelled."""

    def __init__(self):
        self.cancel_event = None
        self.saw_cancel = False

    def __call__(self, config, sink, cancel_event):
        self.cancel_event = cancel_event
        self.saw_cancel = cancel_event.wait(5)
        raise PipelineAborted("cancelled")


def result_with_failure():
    return PipelineResult(
        records=[Game(id=1, title="One")],
        failures=[Failure("2", ProtocolError("https://api.test/2", 500))],
        identifiers_discovered=2,
        pages_scanned=1,
    )


class TestArguments:
    """Test cases for argument handling."""

    def test_interval_sets_both_sources(self):
        args = build_parser().parse_args(["--interval", "2.5", "--detail-interval", "0.5"])

        config = config_from_args(args)

        assert config.catalog_interval == 2.5
        assert config.detail_interval == 0.5

    def test_overrides(self, temp_dir):
        args = build_parser().parse_args([
            "--pages", "3", "--concurrency", "12", "--sink", "store",
            "--db", str(temp_dir / "x.db"), "--api", "xmlapi2", "--timeout", "10",
        ])

        config = config_from_args(args)

        assert (config.pages, config.concurrency, config.sink, config.api, config.request_timeout) == \
            (3, 12, "store", "xmlapi2", 10)
        assert str(config.database_path) == str(temp_dir / "x.db")


class TestMain:
    """Test cases for main()."""

    def test_completed_run_exits_zero_despite_item_failures(self, capsys):
        with patch("bgg_collector.cli.main.run_collection", return_value=result_with_failure()) as run:
            code = main(["--pages", "1", "--interval", "0"])

        assert code == EXIT_OK
        config = run.call_args[0][0]
        assert config.pages == 1
        err = capsys.readouterr().err
        assert "Games delivered: 1" in err
        assert "bad_status: 1" in err

    def test_aborted_run_exits_non_zero(self, capsys):
        aborted = PipelineAborted("no game identifiers discovered", PipelineResult(pages_scanned=1))
        with patch("bgg_collector.cli.main.run_collection", side_effect=aborted):
            code = main(["--pages", "1"])

        assert code == EXIT_FAILED
        assert "no game identifiers discovered" in capsys.readouterr().err

    def test_invalid_configuration_exits_non_zero(self, capsys):
        with patch("bgg_collector.cli.main.run_collection") as run:
            code = main(["--pages", "0"])

        assert code == EXIT_FAILED
        run.assert_not_called()
        assert "Configuration error" in capsys.readouterr().err

    def test_interrupt_exits_130(self):
        with patch("bgg_collector.cli.main.run_until_interrupted", side_effect=KeyboardInterrupt):
            code = main(["--pages", "1"])

        assert code == EXIT_INTERRUPTED

    def test_stats(self, temp_dir, capsys):
        db_path = temp_dir / "games.db"
        GameDatabase(db_path).upsert_games([Game(id=1, rank=1), Game(id=2)])

        code = main(["--stats", "--db", str(db_path)])

        assert code == EXIT_OK
        out = capsys.readouterr().out
        assert "Total games in database: 2" in out
        assert "Ranked games: 1" in out

    def test_malformed_environment_exits_non_zero(self, monkeypatch, capsys):
        monkeypatch.setenv("BGG_PAGES", "abc")
        with patch("bgg_collector.cli.main.run_collection") as run:
            code = main([])

        assert code == EXIT_FAILED
        run.assert_not_called()
        assert "BGG_PAGES" in capsys.readouterr().err


class TestInterrupt:
    """Ctrl-C handling around the collection run."""

    def test_interrupt_sets_cancel_and_reraises(self, test_config):
        fake_run = CancellableRun()
        cancel = threading.Event()

        with patch("bgg_collector.cli.main.ThreadPoolExecutor", InterruptingExecutor), \
                patch("bgg_collector.cli.main.run_collection", fake_run):
            with pytest.raises(KeyboardInterrupt):
                run_until_interrupted(test_config, Mock(spec=Sink), cancel)

        assert cancel.is_set()
        assert fake_run.cancel_event is cancel
        assert fake_run.saw_cancel

    def test_interrupt_through_main_exits_130(self, capsys):
        fake_run = CancellableRun()

        with patch("bgg_collector.cli.main.ThreadPoolExecutor", InterruptingExecutor), \
                patch("bgg_collector.cli.main.run_collection", fake_run):
            code = main(["--pages", "1"])

        assert code == EXIT_INTERRUPTED
        assert fake_run.saw_cancel
        err = capsys.readouterr().err
        assert "Interrupted, waiting for in-flight requests" in err
        assert "Process interrupted by user" in err
