"""Exceptions raised by testnet-deploy"""

from typing import Optional, Sequence


class TndError(Exception):
    """Base exception for testnet-deploy errors"""

    pass


class ConfigError(TndError):
    """Invalid or incomplete configuration"""

    pass


class InvalidTestnetError(TndError, ValueError):
    """Testnet identifier is not usable as a command argument"""

    pass


class HostPlatformError(TndError):
    """Host cannot run the deployment recipe"""

    pass


class CommandError(TndError):
    """External command exited with a non-zero status"""

    def __init__(self, cmd: Sequence[str], returncode: int, stderr: Optional[str] = None):
        self.cmd = list(cmd)
        self.returncode = returncode
        self.stderr = stderr or ""
        super().__init__(f"Command failed with code {returncode}: {' '.join(self.cmd)}")


class ReservationError(TndError):
    """Reservation service refused or failed a request"""

    def __init__(self, message: str, returncode: Optional[int] = None):
        self.returncode = returncode
        super().__init__(message)


class StateError(TndError):
    """Reservation lifecycle transition not allowed"""

    pass


class ContainerError(TndError):
    """Build container wrapper is unavailable"""

    pass


class DeployError(TndError):
    """Deploy command failed"""

    def __init__(self, message: str, returncode: Optional[int] = None):
        self.returncode = returncode
        super().__init__(message)


class InventoryError(TndError):
    """Testnet inventory missing or malformed"""

    pass
