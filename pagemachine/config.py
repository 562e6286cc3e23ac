import logging
from dataclasses import dataclass


@dataclass
class MachineOptions:
    """
    Internal container for PaginationMachine settings.
    Populated by the machine constructor.
    """

    name: str = "PaginationMachine"
    lane_name: str | None = None  # Name of the worker task, defaults to "<name>-lane"
    logger: logging.Logger | None = None  # Falls back to the library logger
    # Publish the public state of a completion whose fetch was superseded
    publish_stale_completions: bool = True

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("A pagination machine needs a non-empty name")

    @property
    def worker_name(self) -> str:
        """
        Name given to the lane worker task.

        Returns:
            The configured lane name, or "<name>-lane"
        """
        return self.lane_name or f"{self.name}-lane"
