"""Pipeline components driving external tools."""

from storedeploy.steps.domains import DomainBinder
from storedeploy.steps.host_config import HostConfigurator
from storedeploy.steps.liveness import LivenessChecker
from storedeploy.steps.prerequisites import PrerequisiteValidator
from storedeploy.steps.process import ProcessRunner
from storedeploy.steps.publisher import ChangePublisher
from storedeploy.steps.repository import RepositoryConfigurator
from storedeploy.steps.trigger import DeploymentTrigger

__all__ = [
    "ChangePublisher",
    "DeploymentTrigger",
    "DomainBinder",
    "HostConfigurator",
    "LivenessChecker",
    "PrerequisiteValidator",
    "ProcessRunner",
    "RepositoryConfigurator",
]
