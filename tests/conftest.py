"""Pytest configuration and shared fixtures."""

import logging
import threading
import time

import pytest

from backtor_restic.core.guard import RepositoryGuard
from backtor_restic.core.repository import RepositoryHandle, ResticRepository
from backtor_restic.core.runner import CommandOutcome, format_command


class FakeRunner:
    """Stand-in for CommandRunner answering restic verbs with canned output.

    ``responses`` maps a restic verb (snapshots, init, unlock, backup, forget)
    to the output to return, or to an exception instance to raise.
    """

    def __init__(self, responses=None, delay: float = 0.0):
        self.responses = dict(responses or {})
        self.delay = delay
        self.calls = []
        self.windows = []
        self._lock = threading.Lock()

    def run(self, template, *args, timeout=None, env=None):
        command = format_command(template, *args)
        verb = command[3]
        with self._lock:
            self.calls.append({"command": command, "verb": verb, "timeout": timeout, "env": env})
        start = time.monotonic()
        if self.delay:
            time.sleep(self.delay)
        with self._lock:
            self.windows.append((verb, start, time.monotonic()))

        response = self.responses.get(verb, "")
        if isinstance(response, BaseException):
            raise response
        return CommandOutcome(command=command, output=response, returncode=0)

    def verbs(self):
        return [call["verb"] for call in self.calls]


@pytest.fixture
def make_runner():
    """The FakeRunner class, for tests scripting their own responses."""
    return FakeRunner


@pytest.fixture
def fake_runner():
    """Runner answering backup/forget with well-formed confirmations."""
    return FakeRunner(
        {
            "unlock": "successfully removed locks\n",
            "backup": (
                "open repository\n"
                "processed 12 files, 3.250 MiB in 0:01\n"
                "snapshot a1b2c3d saved\n"
            ),
            "forget": "removed snapshot a1b2c3d\n",
        }
    )


@pytest.fixture
def repo_handle():
    return RepositoryHandle(path="/backup-repo", password="s3cret")


@pytest.fixture
def repository(repo_handle, fake_runner):
    """Repository wired to the fake runner."""
    return ResticRepository(repo_handle, runner=fake_runner, guard=RepositoryGuard())


@pytest.fixture
def source_root(tmp_path):
    """Backup source root with a 'db1' directory holding a small file."""
    root = tmp_path / "backup-source"
    (root / "db1").mkdir(parents=True)
    (root / "db1" / "dump.sql").write_text("CREATE TABLE t (id int);\n")
    return root


@pytest.fixture
def fake_restic(tmp_path):
    """Executable script mimicking restic's command line and output.

    ``backup`` sleeps for $FAKE_RESTIC_SLEEP seconds when set.
    """
    script = tmp_path / "fake-restic"
    script.write_text(
        "#!/bin/sh\n"
        "# usage: fake-restic -r <repo> <verb> [args]\n"
        'case "$3" in\n'
        "  snapshots) echo 'ID        Time' ;;\n"
        "  unlock) echo 'successfully removed locks' ;;\n"
        "  backup)\n"
        '    if [ -n "$FAKE_RESTIC_SLEEP" ]; then sleep "$FAKE_RESTIC_SLEEP"; fi\n'
        "    echo 'processed 1 files, 0 B in 0:00'\n"
        "    echo 'snapshot 5e6f7a8b saved' ;;\n"
        '  forget) echo "removed snapshot $4" ;;\n'
        "  *) echo \"unknown command $3\" >&2; exit 1 ;;\n"
        "esac\n"
    )
    script.chmod(0o755)
    return script


@pytest.fixture
def sample_config_toml():
    """Return a sample valid TOML configuration string."""
    return """
[repository]
repo_dir = "/srv/restic-repo"
password = "from-file"
engine = "/usr/local/bin/restic"

[worker]
source_path = "/srv/backup-source"
default_timeout = 120
remove_timeout = 300

[conductor]
url = "http://conductor:8080/api/"
poll_interval = 1.5
thread_count = 2
worker_id = "worker-a"

[logging]
level = "debug"
"""


@pytest.fixture
def config_file(tmp_path, sample_config_toml):
    """Create a temporary config file with sample content."""
    config_path = tmp_path / "config.toml"
    config_path.write_text(sample_config_toml)
    return config_path


@pytest.fixture
def restore_logging():
    """Put the root logger back the way the test found it."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)
