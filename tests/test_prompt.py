import asyncio

import pytest

from opencode_lsp.prompt import PromptError, TmuxPromptBridge
from tests.fakes import FakeProvider


class FakeRunner:
    def __init__(self, failures=None):
        self.calls = []
        self.failures = dict(failures or {})

    async def __call__(self, *args, input=None):
        self.calls.append((args, input))
        if args[0] in self.failures:
            return 1, "", self.failures[args[0]]
        return 0, "", ""


@pytest.fixture
def provider():
    p = FakeProvider()
    p.start()
    return p


@pytest.mark.asyncio
async def test_submit_pastes_and_presses_enter(provider):
    runner = FakeRunner()
    bridge = TmuxPromptBridge(provider, runner=runner)

    await bridge.submit("Fix diagnostic: @app.py L1:C1 [ERROR] oops", submit=True)

    (load, load_input), (paste, _), (keys, _) = runner.calls
    assert load[:2] == ("load-buffer", "-b")
    assert load[2].startswith("opencode-")
    assert load[3] == "-"
    assert load_input == "Fix diagnostic: @app.py L1:C1 [ERROR] oops"
    assert paste == ("paste-buffer", "-p", "-d", "-t", "%7", "-b", load[2])
    assert keys == ("send-keys", "-t", "%7", "Enter")


@pytest.mark.asyncio
async def test_submit_false_only_stages_prompt(provider):
    runner = FakeRunner()
    await TmuxPromptBridge(provider, runner=runner).submit("explain this")

    assert [args[0] for args, _ in runner.calls] == ["load-buffer", "paste-buffer"]


@pytest.mark.asyncio
async def test_submit_returns_pending_future(provider):
    runner = FakeRunner()
    pending = TmuxPromptBridge(provider, runner=runner).submit("hello", submit=True)

    assert isinstance(pending, asyncio.Future)
    assert not pending.done()
    await pending
    assert pending.result() is None


@pytest.mark.asyncio
async def test_submit_fails_when_not_running():
    runner = FakeRunner()
    bridge = TmuxPromptBridge(FakeProvider(), runner=runner)

    with pytest.raises(PromptError, match="opencode is not running"):
        await bridge.submit("hello")
    assert runner.calls == []


@pytest.mark.asyncio
async def test_submit_reports_environment_problem():
    bridge = TmuxPromptBridge(FakeProvider(healthy=False), runner=FakeRunner())

    with pytest.raises(PromptError, match="Not running in a `tmux` session"):
        await bridge.submit("hello")


@pytest.mark.asyncio
async def test_tmux_failure_stops_delivery(provider):
    runner = FakeRunner(failures={"paste-buffer": "can't find pane: %7"})
    bridge = TmuxPromptBridge(provider, runner=runner)

    with pytest.raises(PromptError, match="can't find pane: %7"):
        await bridge.submit("hello", submit=True)
    assert [args[0] for args, _ in runner.calls] == ["load-buffer", "paste-buffer"]
