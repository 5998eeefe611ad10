"""The restic repository: its location, its guard and the engine calls on it.

Methods issuing engine commands expect the caller to hold ``guard``;
``initialize`` takes it itself.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from ..__util__ import EngineExecutionError, RepositoryInitError
from .guard import RepositoryGuard
from .runner import CommandOutcome, CommandRunner

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RepositoryHandle:
    """Location and password of the restic repository.

    Attributes:
        path: Repository location as understood by restic (path or URL)
        password: Repository password, handed to restic via RESTIC_PASSWORD
    """

    path: str
    password: str = field(repr=False)


class RepositoryState(Enum):
    """Initialization state of a repository."""

    UNINITIALIZED = "uninitialized"
    READY = "ready"


class ResticRepository:
    """Engine commands against a single repository, serialized by a guard."""

    def __init__(
        self,
        handle: RepositoryHandle,
        runner: Optional[CommandRunner] = None,
        guard: Optional[RepositoryGuard] = None,
        engine: str = "restic",
    ) -> None:
        self.handle = handle
        self.runner = runner or CommandRunner()
        self.guard = guard or RepositoryGuard()
        self.engine = engine
        self.state = RepositoryState.UNINITIALIZED

    def __repr__(self) -> str:
        return f"ResticRepository({self.handle.path!r}, state={self.state.value})"

    def _exec(self, verb: str, *args, timeout: Optional[float] = None) -> CommandOutcome:
        return self.runner.run(
            "{} -r {} " + verb,
            self.engine,
            self.handle.path,
            *args,
            timeout=timeout,
            env={"RESTIC_PASSWORD": self.handle.password},
        )

    def list_snapshots(self) -> CommandOutcome:
        """Reachability probe; fails when the repository is missing or locked out."""
        return self._exec("snapshots")

    def init(self) -> CommandOutcome:
        return self._exec("init")

    def unlock(self) -> CommandOutcome:
        """Remove stale locks left behind by an interrupted engine run."""
        return self._exec("unlock")

    def backup(self, source_dir, timeout: Optional[float] = None) -> CommandOutcome:
        return self._exec("backup {}", source_dir, timeout=timeout)

    def forget(self, snapshot_id: str, timeout: Optional[float] = None) -> CommandOutcome:
        return self._exec("forget {}", snapshot_id, timeout=timeout)

    def initialize(self) -> None:
        """Make sure the repository exists, creating it when it can't be reached.

        Raises:
            RepositoryInitError: If the repository is unreachable and can't be created
        """
        with self.guard:
            if self.state is RepositoryState.READY:
                return

            logger.debug("Checking if restic repo %s was already initialized", self.handle.path)
            try:
                self.list_snapshots()
            except EngineExecutionError as e:
                logger.debug("Couldn't access restic repo. Trying to create it. err=%s", e)
                try:
                    self.init()
                except EngineExecutionError as init_error:
                    logger.debug("Error creating restic repo: %s", init_error)
                    raise RepositoryInitError(
                        f"Restic repo {self.handle.path} is not accessible and could not be created: "
                        f"{init_error}"
                    ) from init_error
                logger.info("Restic repo created successfully")
            else:
                logger.info("Restic repo already exists and is accessible")

            self.state = RepositoryState.READY
