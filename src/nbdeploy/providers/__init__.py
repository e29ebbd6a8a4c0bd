"""Provider workflows."""

from ..models import Provider
from .aws import AWSWorkflow
from .base import Workflow, WorkflowContext, WorkflowState
from .digitalocean import DigitalOceanWorkflow
from .gcp import GCPWorkflow

WORKFLOWS: dict[Provider, type[Workflow]] = {
    Provider.DIGITALOCEAN: DigitalOceanWorkflow,
    Provider.AMAZON: AWSWorkflow,
    Provider.GOOGLE_CLOUD: GCPWorkflow,
}


def get_workflow(provider: Provider, context: WorkflowContext) -> Workflow:
    """Instantiate the workflow for a provider."""
    return WORKFLOWS[provider](context)


__all__ = [
    "AWSWorkflow",
    "DigitalOceanWorkflow",
    "GCPWorkflow",
    "WORKFLOWS",
    "Workflow",
    "WorkflowContext",
    "WorkflowState",
    "get_workflow",
]
