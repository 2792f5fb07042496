"""
Per-node measurement buffer

One Measurement per node, allocated at simulation start and refilled in
place by the driver at every poll.
"""

from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np

from ..exceptions import PreconditionError


@dataclass
class Measurement:
    """Occupancies and link status for each incoming port of a node"""
    occupancies: np.ndarray
    theta_at_iofc: float = 0.0  # phase at the most recent instant of frequency change
    physical_time_at_iom: float = 0.0  # wall-clock time at the most recent measurement
    incoming_link_status: Optional[np.ndarray] = None

    def __post_init__(self):
        self.occupancies = np.asarray(self.occupancies, dtype=float)
        if self.incoming_link_status is None:
            self.incoming_link_status = np.ones(self.occupancies.shape[0], dtype=np.int64)
        else:
            self.incoming_link_status = np.asarray(self.incoming_link_status, dtype=np.int64)

        if self.occupancies.ndim != 1:
            raise PreconditionError("Occupancies must be a 1-D sequence")
        if self.incoming_link_status.shape != self.occupancies.shape:
            raise PreconditionError(
                f"{self.occupancies.size} occupancies but "
                f"{self.incoming_link_status.size} link statuses")
        if not np.all(np.isin(self.incoming_link_status, (0, 1))):
            raise PreconditionError("Link status must be 0 (down) or 1 (up)")

    @classmethod
    def for_node(cls, in_degree: int) -> 'Measurement':
        """Zeroed buffer with every link up"""
        return cls(occupancies=np.zeros(in_degree))

    @property
    def in_degree(self) -> int:
        return self.occupancies.shape[0]

    def update(self, occupancies: Sequence[float], theta_at_iofc: float,
               physical_time_at_iom: float):
        """Refill the buffer in place"""
        if len(occupancies) != self.in_degree:
            raise PreconditionError(
                f"Expected {self.in_degree} occupancies, got {len(occupancies)}")
        self.occupancies[:] = occupancies
        self.theta_at_iofc = theta_at_iofc
        self.physical_time_at_iom = physical_time_at_iom

    def set_link_status(self, port: int, status: int):
        if status not in (0, 1):
            raise PreconditionError(f"Link status must be 0 or 1, got {status}")
        self.incoming_link_status[port] = status
