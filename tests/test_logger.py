import re

import pytest

from anny import logger

STAMP = re.compile(r"^\[\d{2}/\d{2}/\d{4} - \d{2}:\d{2}:\d{2}\] ")


def test_info_goes_to_stdout_in_green(capsys):
    logger.info("hello")
    captured = capsys.readouterr()
    assert captured.err == ""
    assert STAMP.match(captured.out)
    assert captured.out.endswith("\u001b[32m[INFO]\u001b[0m hello\n")


def test_each_value_gets_its_own_line(capsys):
    logger.debug("one", "two")
    lines = capsys.readouterr().out.splitlines()
    assert len(lines) == 2
    assert lines[0].endswith("\u001b[35m[DEBUG]\u001b[0m one")
    assert lines[1].endswith("\u001b[35m[DEBUG]\u001b[0m two")


def test_error_goes_to_stderr_in_red(capsys):
    logger.error(ValueError("broken"))
    captured = capsys.readouterr()
    assert captured.out == ""
    assert captured.err.endswith("\u001b[31m[ERROR]\u001b[0m broken\n")


def test_warnf_formats_message(capsys):
    logger.warnf("port %s busy", "8080")
    err = capsys.readouterr().err
    assert STAMP.match(err)
    assert err.endswith("\u001b[33m[WARN]\u001b[0m port 8080 busy\n")


def test_infof_and_errorf_format(capsys):
    logger.infof("%d songs", 3)
    logger.errorf("failed: %v", "x")
    captured = capsys.readouterr()
    assert captured.out.endswith("[INFO]\u001b[0m 3 songs\n")
    assert captured.err.endswith("[ERROR]\u001b[0m failed: x\n")


def test_debugf_formats(capsys):
    logger.debugf('Criando comando %s no Discord.', "ping")
    assert capsys.readouterr().out.endswith("[DEBUG]\u001b[0m Criando comando ping no Discord.\n")


def test_fatal_logs_and_exits(capsys):
    with pytest.raises(SystemExit) as exc_info:
        logger.fatal("gone")
    assert exc_info.value.code == 1
    assert capsys.readouterr().err.endswith("\u001b[31m[FATAL]\u001b[0m gone\n")


def test_fatalf_formats_and_exits(capsys):
    with pytest.raises(SystemExit) as exc_info:
        logger.fatalf("port %s", "80")
    assert exc_info.value.code == 1
    assert capsys.readouterr().err.endswith("[FATAL]\u001b[0m port 80\n")