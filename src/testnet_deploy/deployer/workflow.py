"""Reserve, containerize and deploy in one go"""

import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence

from testnet_deploy.deployer.deploy import Deployer
from testnet_deploy.deployer.host import check_host
from testnet_deploy.deployer.reservation import ReservationService, ReservationState
from testnet_deploy.errors import DeployError, TndError
from testnet_deploy.testnet.identifier import validate_testnet

logger = logging.getLogger(__name__)


@dataclass
class StepResult:
    name: str
    ok: bool
    detail: str = ""
    command: Optional[List[str]] = None


@dataclass
class WorkflowResult:
    testnet: str
    dry_run: bool = False
    steps: List[StepResult] = field(default_factory=list)
    released: bool = False
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return bool(self.steps) and all(step.ok for step in self.steps)

    @property
    def failed_step(self) -> Optional[StepResult]:
        return next((step for step in self.steps if not step.ok), None)


class Workflow:
    """Host check, reservation and deploy, in that order"""

    def __init__(
        self,
        reservations: ReservationService,
        deployer: Deployer,
        host_check: Callable[[], object] = check_host,
    ):
        self.reservations = reservations
        self.deployer = deployer
        self.host_check = host_check

    def run(
        self,
        testnet: str,
        extra_args: Sequence[str] = (),
        skip_reserve: bool = False,
        release_on_failure: bool = False,
        dry_run: bool = False,
    ) -> WorkflowResult:
        """Run the full recipe, stopping at the first failed step"""
        testnet = validate_testnet(testnet)
        result = WorkflowResult(testnet=testnet, dry_run=dry_run)

        steps = [
            ("Host", self._host),
            ("Reservation", lambda: self._reserve(testnet, skip_reserve, dry_run)),
            ("Deploy", lambda: self.deploy(testnet, extra_args, dry_run)),
        ]

        for name, func in steps:
            try:
                step = func()
            except TndError as e:
                logger.error("%s step failed: %s", name, e)
                result.steps.append(StepResult(name, False, str(e)))
                result.error = e
                break
            step.name = name
            result.steps.append(step)

        # Only a deploy command that ran and failed gives the testnet back
        if isinstance(result.error, DeployError) and release_on_failure and not dry_run:
            result.released = self._release_after_failure(testnet)

        return result

    def _host(self) -> StepResult:
        system = self.host_check()
        return StepResult("Host", True, f"{system} host")

    def _reserve(self, testnet: str, skip_reserve: bool, dry_run: bool) -> StepResult:
        if skip_reserve:
            if dry_run:
                return StepResult("Reservation", True, "using existing reservation")
            reservation = self.reservations.adopt(testnet)
            return StepResult("Reservation", True, f"using existing reservation ({reservation.state.value})")

        cmd = self.reservations.reserve_cmd(testnet)
        if dry_run:
            return StepResult("Reservation", True, "would reserve", cmd)

        self.reservations.reserve(testnet)
        return StepResult("Reservation", True, "reserved", cmd)

    def deploy(self, testnet: str, extra_args: Sequence[str] = (), dry_run: bool = False) -> StepResult:
        """Deploy to a reserved testnet, tracking the outcome in the ledger"""
        if dry_run:
            cmd = self.deployer.deploy(testnet, extra_args, dry_run=True)
            return StepResult("Deploy", True, "would deploy", cmd)

        ledger = self.reservations.ledger
        ledger.transition(testnet, ReservationState.DEPLOYING)
        try:
            cmd = self.deployer.deploy(testnet, extra_args)
        except BaseException as e:
            ledger.transition(testnet, ReservationState.FAILED, error=str(e) or type(e).__name__)
            raise
        ledger.transition(testnet, ReservationState.DEPLOYED)
        return StepResult("Deploy", True, "deployed", cmd)

    def _release_after_failure(self, testnet: str) -> bool:
        logger.warning("Releasing %s after failed deploy", testnet)
        try:
            self.reservations.release(testnet)
        except TndError as e:
            logger.error("Release of %s failed: %s", testnet, e)
            return False
        return True
