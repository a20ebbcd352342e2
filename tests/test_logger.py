import logging
from datetime import datetime, timedelta, timezone

import pytest

from dufs.logger import format_record, init


@pytest.fixture
def clean_logger():
    yield
    logger = logging.getLogger("dufs")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


def test_format_record_utc_uses_z():
    now = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
    assert format_record(logging.INFO, "hello", now) == "2024-01-02T03:04:05Z INFO - hello"


def test_format_record_with_offset_and_warn_level():
    now = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone(timedelta(hours=8)))
    assert format_record(logging.WARNING, "x", now) == "2024-01-02T03:04:05+08:00 WARN - x"


def test_format_record_error_level_name():
    now = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
    assert " ERROR - boom" in format_record(logging.ERROR, "boom", now)


def test_init_writes_to_file(tmp_path, clean_logger):
    path = tmp_path / "dufs.log"
    logger = init(path)
    logger.info("first")
    logger.debug("hidden")
    logger.error("second")
    lines = path.read_text(encoding="utf-8").splitlines()
    assert len(lines) == 2
    assert lines[0].endswith(" INFO - first")
    assert lines[1].endswith(" ERROR - second")


def test_init_appends_to_existing_file(tmp_path, clean_logger):
    path = tmp_path / "dufs.log"
    path.write_text("old line\n", encoding="utf-8")
    init(path).info("new")
    lines = path.read_text(encoding="utf-8").splitlines()
    assert lines[0] == "old line"
    assert lines[1].endswith(" INFO - new")


def test_init_without_file_splits_streams(capsys, clean_logger):
    logger = init(None)
    logger.info("to stdout")
    logger.error("to stderr")
    captured = capsys.readouterr()
    assert captured.out.strip().endswith("INFO - to stdout")
    assert captured.err.strip().endswith("ERROR - to stderr")
    assert "to stderr" not in captured.out


def test_init_bad_file_raises(tmp_path, clean_logger):
    with pytest.raises(OSError, match="Failed to open the log file at"):
        init(tmp_path / "missing" / "dufs.log")