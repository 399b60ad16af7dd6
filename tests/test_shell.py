import pytest

from opencode_lsp.provider import shell as shell_module
from opencode_lsp.provider.shell import TmuxShell


class RecordingRun:
    def __init__(self, responses=None):
        self.calls = []
        self.responses = list(responses or [])

    def __call__(self, cmd, *, input=None):
        self.calls.append(cmd)
        if self.responses:
            return self.responses.pop(0)
        return 0, "", ""


@pytest.fixture
def run(monkeypatch):
    recorder = RecordingRun()
    monkeypatch.setattr(shell_module, "_run", recorder)
    return recorder


def test_split_window_detached_by_default(run):
    run.responses = [(0, "%12\n", "")]

    pane_id = TmuxShell().split_window("opencode --port 0", options="-h -l '40%'")

    assert pane_id == "%12"
    assert run.calls == [[
        "tmux", "split-window", "-d", "-P", "-F", "#{pane_id}",
        "-h", "-l", "40%", "opencode --port 0",
    ]]


def test_split_window_focus_omits_detach(run):
    run.responses = [(0, "%3", "")]
    TmuxShell().split_window("opencode", focus=True)

    assert "-d" not in run.calls[0]


@pytest.mark.parametrize("response", [(1, "", "no space for new pane"), (0, "  \n", "")])
def test_split_window_failure_is_none(run, response):
    run.responses = [response]
    assert TmuxShell().split_window("opencode") is None


def test_list_panes(run):
    run.responses = [(0, "%1\n%4\n", ""), (1, "", "can't find pane: %9")]
    shell = TmuxShell()

    assert shell.list_panes("%4") == ["%1", "%4"]
    assert shell.list_panes("%9") == []


def test_set_pane_option(run):
    assert TmuxShell().set_pane_option("%2", "allow-passthrough", "off")
    assert run.calls == [["tmux", "set-option", "-t", "%2", "-p", "allow-passthrough", "off"]]


def test_pane_pid(run):
    run.responses = [(0, "4242\n", ""), (0, "\n", ""), (1, "", "no such pane")]
    shell = TmuxShell()

    assert shell.pane_pid("%1") == 4242
    assert shell.pane_pid("%1") is None
    assert shell.pane_pid("%1") is None


def test_process_group_filters_by_pgid(run, monkeypatch):
    monkeypatch.setattr(shell_module.os, "getpgid", lambda pid: 500)
    run.responses = [(0, "  1   1\n500 500\n501 500\n502 500\n600 600\ngarbage\n", "")]

    assert TmuxShell().process_group(500) == [500, 501, 502]


def test_process_group_of_missing_process_is_empty(run, monkeypatch):
    def gone(pid):
        raise ProcessLookupError(pid)

    monkeypatch.setattr(shell_module.os, "getpgid", gone)

    assert TmuxShell().process_group(500) == []
    assert run.calls == []


@pytest.mark.parametrize(
    ("response", "expected"),
    [
        ((0, "S+\n", ""), True),
        ((0, "Z\n", ""), False),
        ((1, "", ""), False),
    ],
)
def test_is_running(run, response, expected):
    run.responses = [response]
    assert TmuxShell().is_running(123) is expected


def test_signal_missing_process(monkeypatch):
    def gone(pid, sig):
        raise ProcessLookupError(pid)

    monkeypatch.setattr(shell_module.os, "kill", gone)
    assert TmuxShell().signal(123, 15) is False


def test_in_session_reads_tmux_env(monkeypatch):
    monkeypatch.setenv("TMUX", "/tmp/tmux-1000/default,123,0")
    assert TmuxShell().in_session()
    monkeypatch.delenv("TMUX")
    assert not TmuxShell().in_session()
