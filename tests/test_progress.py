import threading
import time

import pytest

from what_cli.errors import ProcessError
from what_cli.progress import CLEAR_LINE, FRAMES, ProgressIndicator


def _indicator(console):
    return ProgressIndicator(console, interval=0.01)


def test_returns_value_and_prints_success(buffer_console):
    console, buf = buffer_console

    result = _indicator(console).run(lambda: 42, "working", "all done", "it broke")

    output = buf.getvalue()
    assert result == 42
    assert output.count(CLEAR_LINE) == 1
    assert output.endswith("all done\n")
    assert "it broke" not in output


def test_animates_until_work_completes(buffer_console):
    console, buf = buffer_console
    release = threading.Event()

    def work():
        release.wait(timeout=5)
        return "ok"

    timer = threading.Timer(0.08, release.set)
    timer.start()
    try:
        assert _indicator(console).run(work, "capturing", "captured", "failed") == "ok"
    finally:
        timer.cancel()

    animation = buf.getvalue().split(CLEAR_LINE)[0]
    assert f"{FRAMES[0]} capturing\r" in animation
    assert f"{FRAMES[1]} capturing\r" in animation


def test_failure_propagates_after_single_clear(buffer_console):
    console, buf = buffer_console

    def work():
        time.sleep(0.03)
        raise ProcessError("tmux", "capture exited with error status code 1", 1)

    with pytest.raises(ProcessError):
        _indicator(console).run(work, "capturing", "captured", "couldn't capture")

    output = buf.getvalue()
    assert output.count(CLEAR_LINE) == 1
    after_clear = output.split(CLEAR_LINE, 1)[1]
    assert after_clear == "couldn't capture\n"
    assert not any(frame in after_clear for frame in FRAMES)


def test_not_reentrant(buffer_console):
    console, _ = buffer_console
    indicator = _indicator(console)

    def nested():
        return indicator.run(lambda: 1, "inner", "inner done", "inner failed")

    with pytest.raises(RuntimeError):
        indicator.run(nested, "outer", "outer done", "outer failed")

    # usable again once the previous unit has finished
    assert indicator.run(lambda: 2, "again", "done", "failed") == 2
