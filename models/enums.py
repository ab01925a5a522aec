"""
Centralized Enum definitions for the project.
"""

from enum import Enum


class ProductType(str, Enum):
    """Storage class of a product; determines its ideal environmental setpoints"""

    FRESH = "FRESH"
    FROZEN = "FROZEN"
    DRY = "DRY"


class ProductStatus(str, Enum):
    """Health status derived from sensor readings"""

    OK = "OK"
    WARNING = "WARNING"  # Temperature drifted past the tolerated deviation


class ConnectionStatus(str, Enum):
    """Connection states reported by the publish transport"""

    CONNECTING = "Connecting"
    CONNECTED = "Connected"
    DISCONNECTED = "Disconnected"
    ERROR = "Error"  # Reported as "Error: <detail>"

    def with_detail(self, detail: str) -> str:
        """Render the status string sent to status subscribers."""
        if self is ConnectionStatus.ERROR:
            return f"{self.value}: {detail}"
        return self.value


class SchedulerState(str, Enum):
    """Lifecycle states of a simulation session"""

    STOPPED = "STOPPED"
    RUNNING = "RUNNING"
