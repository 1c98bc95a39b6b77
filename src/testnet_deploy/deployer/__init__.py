"""Deployment orchestrator for testnets."""

from .container import ContainerWrapper
from .deploy import Deployer, build_deploy_command
from .host import check_host, check_prerequisites, in_container
from .reservation import Reservation, ReservationLedger, ReservationService, ReservationState
from .runner import format_command, run_command
from .workflow import StepResult, Workflow, WorkflowResult

__all__ = [
    "ContainerWrapper",
    "Deployer",
    "build_deploy_command",
    "check_host",
    "check_prerequisites",
    "in_container",
    "Reservation",
    "ReservationLedger",
    "ReservationService",
    "ReservationState",
    "format_command",
    "run_command",
    "StepResult",
    "Workflow",
    "WorkflowResult",
]
