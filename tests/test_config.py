import pytest

from opencode_lsp.config import Config, LspOptions

ENV_KEYS = [
    "OPENCODE_CMD",
    "OPENCODE_PROVIDER",
    "OPENCODE_LSP_ENABLED",
    "OPENCODE_LSP_FILETYPES",
    "OPENCODE_TMUX_OPTIONS",
    "OPENCODE_TMUX_FOCUS",
    "OPENCODE_TMUX_ALLOW_PASSTHROUGH",
    "OPENCODE_CONTROL_PORT",
]


@pytest.fixture
def clean_env(monkeypatch):
    # setenv first so monkeypatch restores "unset" even for values
    # load_dotenv writes during the test
    for key in ENV_KEYS:
        monkeypatch.setenv(key, "")
        monkeypatch.delenv(key)
    return monkeypatch


def test_defaults(clean_env, tmp_path):
    config = Config.from_env(tmp_path / "missing.env")

    assert config.cmd == "opencode"
    assert config.provider == "tmux"
    assert config.lsp == LspOptions(enabled=True, filetypes=None)
    assert config.tmux.options == "-h"
    assert config.tmux.focus is False
    assert config.tmux.allow_passthrough is False
    assert config.control_port == 0


def test_environment_overrides(clean_env, tmp_path):
    clean_env.setenv("OPENCODE_LSP_ENABLED", "no")
    clean_env.setenv("OPENCODE_LSP_FILETYPES", "python, lua,,typescript ")
    clean_env.setenv("OPENCODE_TMUX_FOCUS", "TRUE")
    clean_env.setenv("OPENCODE_TMUX_ALLOW_PASSTHROUGH", "1")
    clean_env.setenv("OPENCODE_CONTROL_PORT", "9000")

    config = Config.from_env(tmp_path / "missing.env")

    assert config.lsp.enabled is False
    assert config.lsp.filetypes == ("python", "lua", "typescript")
    assert config.tmux.focus is True
    assert config.tmux.allow_passthrough is True
    assert config.control_port == 9000


def test_reads_dotenv_file(clean_env, tmp_path):
    env_file = tmp_path / ".env"
    env_file.write_text("OPENCODE_CMD=opencode --continue\nOPENCODE_TMUX_OPTIONS=-v -l 30%\n")

    config = Config.from_env(env_file)

    assert config.cmd == "opencode --continue"
    assert config.tmux.options == "-v -l 30%"


@pytest.mark.parametrize(
    ("filetypes", "language", "expected"),
    [
        (None, "python", True),
        (None, None, True),
        (("python",), "python", True),
        (("python",), "lua", False),
        (("python",), None, False),
    ],
)
def test_attaches_to(filetypes, language, expected):
    assert LspOptions(filetypes=filetypes).attaches_to(language) is expected
