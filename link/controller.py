"""Link facade wiring manager, sender, receiver and tracker together."""

import logging
from types import TracebackType

from common.connection import LinkSettings
from link.manager import ConnectionManager, PortOpener, open_port
from link.receiver import LineReceiver
from link.sender import CommandSender
from session.tracker import WindingTracker

logger = logging.getLogger(__name__)


class WinderLink:
    """One serial link to one winder.

    Data flows transport -> receiver -> tracker on the receiver thread, and
    tracker -> sender -> transport on the caller's thread.
    """

    def __init__(
        self,
        settings: LinkSettings | None = None,
        opener: PortOpener = open_port,
    ) -> None:
        self.settings = settings or LinkSettings()
        self.manager = ConnectionManager(self.settings, opener=opener)
        self.sender = CommandSender(self.manager)
        self.tracker = WindingTracker(
            self.sender, reset_start_gap_s=self.settings.reset_start_gap_s
        )
        self.receiver = LineReceiver(self.tracker.handle_line)
        self.manager.add_listener(self.tracker.on_connection_changed)

    def connect(self, device: str, wait_ready: bool = True) -> None:
        """Open the port, start receiving, and wait out the settle window.

        Raises ConnectError if the port cannot be opened.
        """
        if self.manager.is_connected:
            logger.debug("Already connected, ignoring connect")
            return
        self.manager.connect(device, wait_ready=False)
        port = self.manager.port
        if port is not None:
            self.receiver.start(port)
        if wait_ready:
            self.manager.wait_ready()

    def disconnect(self) -> None:
        """Stop receiving and close the port."""
        self.receiver.stop()
        self.manager.disconnect()

    def close(self) -> None:
        self.disconnect()

    def __enter__(self) -> "WinderLink":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()
