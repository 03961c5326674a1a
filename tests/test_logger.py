import re

import pytest

from godis import logger

LINE_RE = r"\[{level}\]\[test_logger\.py:\d+\] \d{{4}}/\d{{2}}/\d{{2}} \d{{2}}:\d{{2}}:\d{{2}} {msg}\n"


@pytest.fixture(autouse=True)
def _detach_file():
    yield
    logger._close_file()


def _settings(tmp_path):
    return logger.Settings(
        path=str(tmp_path / "logs"), name="godis", ext="log", time_format="%Y-%m-%d"
    )


def test_info_format(tmp_path, capsys):
    target = logger.setup(_settings(tmp_path))
    assert target.name.startswith("godis-")
    assert target.suffix == ".log"
    logger.info("hello", 1)
    out = capsys.readouterr().out
    content = target.read_text(encoding="utf-8")
    assert content == out
    assert out.startswith("[INFO][test_logger.py:")
    assert out.endswith(" hello 1\n")
    assert re.fullmatch(LINE_RE.format(level="INFO", msg="hello 1"), out)


def test_levels(tmp_path, capsys):
    target = logger.setup(_settings(tmp_path))
    logger.debug("first")
    logger.warn("second")
    logger.error("third")
    out = capsys.readouterr().out
    content = target.read_text(encoding="utf-8")
    assert content == out
    lines = out.splitlines(keepends=True)
    assert len(lines) == 3
    expected = [("DEBUG", "first"), ("WARN", "second"), ("ERROR", "third")]
    for line, (level, msg) in zip(lines, expected):
        assert line.startswith(f"[{level}][test_logger.py:")
        assert line.endswith(f" {msg}\n")
        assert re.fullmatch(LINE_RE.format(level=level, msg=msg), line)


def test_fatal_exits(capsys):
    with pytest.raises(SystemExit) as info:
        logger.fatal("boom")
    assert info.value.code == 1
    out = capsys.readouterr().out
    assert out.startswith("[FATAL]")
    assert out.endswith("boom\n")


def test_setup_writes_file(tmp_path, capsys):
    target = logger.setup(_settings(tmp_path))
    assert target.parent == tmp_path / "logs"
    assert re.fullmatch(r"godis-\d{4}-\d{2}-\d{2}\.log", target.name)
    logger.info("to file")
    content = target.read_text(encoding="utf-8")
    assert re.fullmatch(LINE_RE.format(level="INFO", msg="to file"), content)
    assert "to file" in capsys.readouterr().out


def test_setup_fails_when_path_is_a_file(tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("x")
    with pytest.raises(OSError):
        logger.setup(logger.Settings(path=str(blocker)))