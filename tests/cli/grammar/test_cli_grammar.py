import pytest
from typer.testing import CliRunner

from sifpull.cli.main import app
from tests.kernel.mocks import MockImageCache, all_calls, make_backends

runner = CliRunner()


@pytest.fixture
def backends(mocker, endpoint):
    backends = make_backends()
    mocker.patch("sifpull.cli.commands.pull.default_backends", return_value=backends)
    mocker.patch("sifpull.cli.commands.pull.get_cache_handle", return_value=MockImageCache())
    mocker.patch("sifpull.cli.commands.pull.load_remote_endpoint", return_value=endpoint)
    return backends


def test_cli_app_exists():
    assert app is not None


# --- Help ---
@pytest.mark.parametrize("command", [["--help"], ["pull", "--help"], ["version", "--help"]])
def test_help_output(command):
    result = runner.invoke(app, command)
    assert result.exit_code == 0
    assert "Usage:" in result.output


def test_pull_help_lists_public_flags_only():
    result = runner.invoke(app, ["pull", "--help"])
    for flag in ["--arch", "--library", "--dir", "--disable-cache", "--force", "--nohttps",
                 "--tmpdir", "--docker-host", "--docker-username", "--docker-password",
                 "--docker-login", "--no-cleanup", "--allow-unsigned"]:
        assert flag in result.output
    for hidden in ["--name", "--allow-unauthenticated", "--oci "]:
        assert hidden not in result.output


def test_no_arguments_shows_help():
    result = runner.invoke(app, [])
    assert "Usage:" in result.output


# --- Invalid invocations ---
@pytest.mark.parametrize("command", [
    ["nonexistent-command"],
    ["pull"],
    ["pull", "--invalid-flag", "busybox"],
])
def test_invalid_invocations_are_usage_errors(backends, command):
    result = runner.invoke(app, command)
    assert result.exit_code == 2
    assert all_calls(backends) == 0


def test_too_many_positionals(backends):
    result = runner.invoke(app, ["pull", "a.sif", "docker://alpine", "extra"])
    assert result.exit_code == 2
    assert all_calls(backends) == 0


# --- Flag to config mapping ---
def test_positional_image_name(backends):
    result = runner.invoke(app, ["pull", "mine.sif", "docker://alpine"])
    assert result.exit_code == 0
    assert str(backends.oci.calls[0]["dest"]) == "mine.sif"


def test_name_flag_wins_over_positional(backends):
    result = runner.invoke(app, ["pull", "--name", "flag.sif", "positional.sif", "docker://alpine"])
    assert result.exit_code == 0
    assert str(backends.oci.calls[0]["dest"]) == "flag.sif"


def test_dir_from_environment(backends, tmp_path):
    target = tmp_path / "images"
    result = runner.invoke(app, ["pull", "docker://alpine:3.18"], env={"SIFPULL_PULLDIR": str(target)})
    assert result.exit_code == 0
    assert backends.oci.calls[0]["dest"] == target / "alpine_3.18.sif"


def test_library_flags(backends):
    result = runner.invoke(app, ["pull", "--arch", "arm64", "--library", "https://lib.example.org", "alpine"])
    assert result.exit_code == 0
    options = backends.library.calls[0]["options"]
    assert options.architecture == "arm64"
    assert options.library.base_url == "https://lib.example.org"


def test_oci_flags(backends):
    result = runner.invoke(app, [
        "pull", "--docker-host", "tcp://docker:2375", "--nohttps", "--no-cleanup", "--oci",
        "--tmpdir", "/scratch", "--docker-username", "bob", "--docker-password", "pw",
        "docker://alpine",
    ])
    assert result.exit_code == 0
    options = backends.oci.calls[0]["options"]
    assert options.docker_host == "tcp://docker:2375"
    assert options.no_https and options.no_cleanup and options.oci_sif
    assert options.tmp_dir == "/scratch"
    assert options.credentials.username == "bob"
    assert options.credentials.password == "pw"


def test_docker_login_prompts(backends):
    result = runner.invoke(app, ["pull", "--docker-login", "docker://alpine"], input="bob\npw\n")
    assert result.exit_code == 0
    credentials = backends.oci.calls[0]["options"].credentials
    assert (credentials.username, credentials.password) == ("bob", "pw")


def test_docker_login_not_prompted_for_library(backends):
    result = runner.invoke(app, ["pull", "--docker-login", "alpine"])
    assert result.exit_code == 0
    assert "Docker Username" not in result.output


def test_force_flag_short_form(backends):
    with open("alpine_latest.sif", "w") as f:
        f.write("old")
    result = runner.invoke(app, ["pull", "-F", "docker://alpine"])
    assert result.exit_code == 0
    assert len(backends.oci.calls) == 1


def test_disable_cache_flag(backends, mocker):
    handle = mocker.patch("sifpull.cli.commands.pull.get_cache_handle", return_value=MockImageCache(disabled=True))
    result = runner.invoke(app, ["pull", "--disable-cache", "docker://alpine"])
    assert result.exit_code == 0
    handle.assert_called_once_with(disable=True)


def test_version(mocker):
    mocker.patch("sifpull.cli.commands.version.importlib.metadata.version", return_value="0.1.0")
    result = runner.invoke(app, ["version"])
    assert result.exit_code == 0
    assert "sifpull version: 0.1.0" in result.output
