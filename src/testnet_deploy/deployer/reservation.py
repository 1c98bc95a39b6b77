"""Testnet reservations.

Reserving and releasing go through the external reservation service (Dee),
invoked as a command; only its exit status is interpreted. What this module
owns is the local ledger: a YAML file recording which testnets the operator
holds and where each one is in its lifecycle::

    reserved -> deploying -> deployed | failed -> ... -> released
"""

import getpass
import logging
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence

import yaml

from testnet_deploy.deployer.runner import format_command, run_command
from testnet_deploy.errors import CommandError, ReservationError, StateError
from testnet_deploy.testnet.identifier import validate_testnet

logger = logging.getLogger(__name__)


class ReservationState(str, Enum):
    RESERVED = "reserved"
    DEPLOYING = "deploying"
    DEPLOYED = "deployed"
    FAILED = "failed"
    RELEASED = "released"


ACTIVE_STATES = frozenset(
    {
        ReservationState.RESERVED,
        ReservationState.DEPLOYING,
        ReservationState.DEPLOYED,
        ReservationState.FAILED,
    }
)

# None stands for "no record"
TRANSITIONS = {
    None: {ReservationState.RESERVED},
    ReservationState.RESERVED: {ReservationState.DEPLOYING, ReservationState.RELEASED},
    ReservationState.DEPLOYING: {
        ReservationState.DEPLOYED,
        ReservationState.FAILED,
        ReservationState.RELEASED,
    },
    ReservationState.DEPLOYED: {ReservationState.DEPLOYING, ReservationState.RELEASED},
    ReservationState.FAILED: {ReservationState.DEPLOYING, ReservationState.RELEASED},
    ReservationState.RELEASED: {ReservationState.RESERVED},
}


def _now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


def _current_user() -> str:
    try:
        return getpass.getuser()
    except (KeyError, OSError):
        return "unknown"


@dataclass
class Reservation:
    testnet: str
    state: ReservationState
    owner: str
    reserved_at: str
    updated_at: str
    external: bool = False
    last_error: Optional[str] = None

    @property
    def active(self) -> bool:
        return self.state in ACTIVE_STATES

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["state"] = self.state.value
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Reservation":
        try:
            return cls(
                testnet=data["testnet"],
                state=ReservationState(data["state"]),
                owner=data.get("owner", "unknown"),
                reserved_at=data.get("reserved_at", ""),
                updated_at=data.get("updated_at", ""),
                external=bool(data.get("external", False)),
                last_error=data.get("last_error"),
            )
        except (KeyError, ValueError) as e:
            raise StateError(f"Malformed reservation record: {data!r}") from e


class ReservationLedger:
    """YAML-backed record of the operator's reservations"""

    def __init__(self, path: Path):
        self.path = Path(path).expanduser()

    def _load(self) -> Dict[str, Reservation]:
        if not self.path.exists():
            return {}

        with open(self.path) as f:
            try:
                data = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise StateError(f"Unreadable reservation ledger {self.path}: {e}") from e

        records = data.get("reservations", {}) if isinstance(data, dict) else None
        if not isinstance(records, dict):
            raise StateError(f"Unreadable reservation ledger {self.path}")

        return {name: Reservation.from_dict(record) for name, record in records.items()}

    def _save(self, reservations: Dict[str, Reservation]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        data = {"reservations": {name: r.to_dict() for name, r in sorted(reservations.items())}}

        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        with open(tmp_path, "w") as f:
            yaml.safe_dump(data, f, default_flow_style=False)
        tmp_path.replace(self.path)

    def get(self, testnet: str) -> Optional[Reservation]:
        """Get the reservation for a testnet, if any"""
        return self._load().get(testnet)

    def list(self, active_only: bool = False) -> List[Reservation]:
        """List reservations ordered by testnet"""
        reservations = sorted(self._load().values(), key=lambda r: r.testnet)
        if active_only:
            reservations = [r for r in reservations if r.active]
        return reservations

    def record(self, testnet: str, external: bool = False) -> Reservation:
        """Record a new reservation"""
        reservations = self._load()
        current = reservations.get(testnet)
        self._check_transition(testnet, current, ReservationState.RESERVED)

        now = _now()
        reservation = Reservation(
            testnet=testnet,
            state=ReservationState.RESERVED,
            owner=_current_user(),
            reserved_at=now,
            updated_at=now,
            external=external,
        )
        reservations[testnet] = reservation
        self._save(reservations)
        return reservation

    def transition(
        self, testnet: str, state: ReservationState, error: Optional[str] = None
    ) -> Reservation:
        """Move a reservation to a new state"""
        reservations = self._load()
        current = reservations.get(testnet)
        self._check_transition(testnet, current, state)

        current.state = state
        current.updated_at = _now()
        current.last_error = error if state == ReservationState.FAILED else None
        self._save(reservations)
        logger.debug("Reservation %s is now %s", testnet, state.value)
        return current

    def forget(self, testnet: str) -> bool:
        """Drop a record; returns whether one existed"""
        reservations = self._load()
        if reservations.pop(testnet, None) is None:
            return False
        self._save(reservations)
        return True

    def _check_transition(
        self, testnet: str, current: Optional[Reservation], state: ReservationState
    ) -> None:
        current_state = current.state if current else None
        if state not in TRANSITIONS[current_state]:
            found = current_state.value if current_state else "not reserved"
            raise StateError(f"Testnet {testnet} is {found}, cannot move to {state.value}")


Runner = Callable[..., Any]


class ReservationService:
    """Reserve and release testnets through the reservation service"""

    def __init__(
        self,
        ledger: ReservationLedger,
        reserve_command: Sequence[str],
        release_command: Sequence[str],
        runner: Runner = run_command,
    ):
        self.ledger = ledger
        self.reserve_command = list(reserve_command)
        self.release_command = list(release_command)
        self.runner = runner

    @classmethod
    def from_config(cls, config: Dict[str, Any], runner: Runner = run_command) -> "ReservationService":
        reservation = config.get("reservation", {})
        return cls(
            ledger=ReservationLedger(Path(reservation["ledger"])),
            reserve_command=reservation["reserve"],
            release_command=reservation["release"],
            runner=runner,
        )

    def reserve_cmd(self, testnet: str) -> List[str]:
        return format_command(self.reserve_command, testnet=testnet)

    def release_cmd(self, testnet: str) -> List[str]:
        return format_command(self.release_command, testnet=testnet)

    def reserve(self, testnet: str) -> Reservation:
        """Reserve a testnet and record it"""
        testnet = validate_testnet(testnet)

        current = self.ledger.get(testnet)
        if current and current.active:
            raise ReservationError(f"Testnet {testnet} is already reserved ({current.state.value})")

        self._invoke(self.reserve_cmd(testnet), f"Reserving {testnet}")
        reservation = self.ledger.record(testnet)
        logger.info("Reserved testnet %s", testnet)
        return reservation

    def adopt(self, testnet: str) -> Reservation:
        """Record a reservation made outside this tool"""
        testnet = validate_testnet(testnet)

        current = self.ledger.get(testnet)
        if current and current.active:
            return current

        reservation = self.ledger.record(testnet, external=True)
        logger.info("Adopted external reservation of %s", testnet)
        return reservation

    def recover(self, testnet: str) -> Reservation:
        """Mark a deploy that never finished as failed so it can be retried"""
        testnet = validate_testnet(testnet)

        current = self.ledger.get(testnet)
        if current is None or not current.active:
            raise ReservationError(f"Testnet {testnet} is not reserved")
        if current.state != ReservationState.DEPLOYING:
            return current

        logger.warning("Marking interrupted deploy of %s as failed", testnet)
        return self.ledger.transition(testnet, ReservationState.FAILED, error="deploy interrupted")

    def release(self, testnet: str, force: bool = False) -> Optional[Reservation]:
        """Release a testnet back to the reservation service"""
        testnet = validate_testnet(testnet)

        current = self.ledger.get(testnet)
        if current is None or not current.active:
            if not force:
                raise ReservationError(f"Testnet {testnet} is not reserved")
            logger.warning("Releasing %s without an active reservation record", testnet)

        self._invoke(self.release_cmd(testnet), f"Releasing {testnet}")

        if current is None or not current.active:
            return current

        reservation = self.ledger.transition(testnet, ReservationState.RELEASED)
        logger.info("Released testnet %s", testnet)
        return reservation

    def _invoke(self, cmd: List[str], action: str) -> None:
        logger.info("%s: %s", action, " ".join(cmd))
        try:
            self.runner(cmd, check=True)
        except CommandError as e:
            detail = e.stderr.strip() or f"exit code {e.returncode}"
            raise ReservationError(f"{action} failed: {detail}", e.returncode) from e
