import random
import threading
from typing import List, Optional

import pytest

from salvo.config import HostConfig
from salvo.host import MatchCoordinator
from salvo.reporting import QueueReporter


class HostThread:
    """A coordinator serving on a loopback ephemeral port in the background."""

    def __init__(self, coordinator: MatchCoordinator) -> None:
        self.coordinator = coordinator
        self.result: Optional[int] = None
        self.error: Optional[BaseException] = None
        self.thread = threading.Thread(target=self._run, daemon=True)

    def _run(self) -> None:
        try:
            self.result = self.coordinator.serve()
        except Exception as exc:
            self.error = exc

    def start(self) -> "HostThread":
        self.thread.start()
        assert self.coordinator.ready.wait(5), "host never started listening"
        return self

    @property
    def port(self) -> int:
        assert self.coordinator.address is not None
        return self.coordinator.address[1]

    @property
    def reporter(self) -> QueueReporter:
        return self.coordinator.reporter

    def join(self, timeout: float = 5.0) -> None:
        self.thread.join(timeout)
        assert not self.thread.is_alive(), "host is still serving"

    def events(self) -> List[tuple]:
        drained = []
        event = self.reporter.try_get(0.0)
        while event is not None:
            drained.append(event)
            event = self.reporter.try_get(0.0)
        return drained


@pytest.fixture
def rng() -> random.Random:
    return random.Random(1234)


@pytest.fixture
def start_host():
    def _start(dimension: int = 1, seed: int = 7) -> HostThread:
        config = HostConfig(dimension=dimension, port=0, bind="127.0.0.1", timeout=5.0)
        coordinator = MatchCoordinator(config, reporter=QueueReporter(), rng=random.Random(seed))
        return HostThread(coordinator).start()

    return _start
