"""Remediation dispatch shared by every collector.

Cleanup launches one remediation experiment per eligible resource and
isolates failures per resource: a failed launch is logged with the
resource id and left out of the result map, and the loop moves on.
"""

import asyncio
import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..clients.protocols import RemediationClient, RemediationError, TemplateStore
from ..models.leaked_resource import LeakedResource
from ..models.sources import ExperimentTemplate
from ..utils.telemetry import DEFAULT_BATCH_SIZE, get_correlation_id_for_logging, log_batched
from .classification import is_eligible_for_cleanup, utcnow

module_logger = logging.getLogger(__name__)


def is_cancelled(cancellation: Optional[asyncio.Event]) -> bool:
    return cancellation is not None and cancellation.is_set()


@dataclass
class CleanupContext:
    """State scoped to a single cleanup call.

    The template is fetched lazily by the first eligible resource and
    reused for the rest of the call. A new context is created for every
    call, so a template is never carried over between passes.
    """

    template_id: str
    owner_team: str
    template: Optional[ExperimentTemplate] = None

    async def get_template(self, template_store: TemplateStore) -> ExperimentTemplate:
        if self.template is None:
            self.template = await template_store.get_template(self.template_id, self.owner_team)
        return self.template


async def launch_remediation(
    resource_id: str,
    template: ExperimentTemplate,
    override_parameters: dict[str, str],
    remediation_client: RemediationClient,
) -> str:
    """
    Launch one remediation experiment.

    Returns:
        The launched experiment id

    Raises:
        RemediationError: If the launch was rejected or returned no id
    """
    response = await remediation_client.launch_from_template(template, override_parameters)

    if not response.success:
        raise RemediationError(
            response.error_message or "Remediation launch was rejected",
            resource_id=resource_id,
            status_code=response.status_code,
        )
    if not response.launched_id:
        raise RemediationError(
            "Remediation launch returned no experiment id",
            resource_id=resource_id,
            status_code=response.status_code,
        )

    return response.launched_id


async def dispatch_remediation(
    resources: Mapping[str, LeakedResource],
    *,
    collector_name: str,
    template_id: str,
    owner_team: str,
    template_store: TemplateStore,
    remediation_client: RemediationClient,
    build_overrides: Callable[[LeakedResource], dict[str, str]],
    cancellation: Optional[asyncio.Event] = None,
    logger: Optional[logging.Logger] = None,
    batch_size: int = DEFAULT_BATCH_SIZE,
    now: Optional[datetime] = None,
) -> dict[str, str]:
    """
    Remediate every eligible resource, one at a time.

    A resource is eligible when it is non-impactful and still past the
    staleness threshold at the moment it is reached. The template is
    fetched at most once for the call; a failed fetch counts against the
    current resource only and the next eligible resource fetches again.

    Args:
        resources: Leaked resources keyed by id
        collector_name: Name used as the telemetry event prefix
        template_id: Remediation template to launch
        owner_team: Team owning the template
        template_store: Store the template is fetched from
        remediation_client: Client that launches the experiment
        build_overrides: Builds the override parameters for a resource
        cancellation: When set, remaining resources are skipped
        logger: Logger to emit on, defaults to this module's logger
        batch_size: Entries per telemetry batch
        now: Reference time for the staleness check, defaults to the
             current time at each resource

    Returns:
        Remediation experiment id per successfully launched resource id
    """
    log = logger or module_logger
    context = CleanupContext(template_id=template_id, owner_team=owner_team)
    cleaned: dict[str, str] = {}
    failed: dict[str, str] = {}
    skipped = 0

    for resource_id, resource in resources.items():
        if is_cancelled(cancellation):
            log.warning(
                f"{collector_name}: cleanup cancelled, skipping remaining resources",
                extra={"collector": collector_name, **get_correlation_id_for_logging()},
            )
            break

        if not is_eligible_for_cleanup(resource, now or utcnow()):
            skipped += 1
            continue

        try:
            template = await context.get_template(template_store)
            cleaned[resource_id] = await launch_remediation(
                resource_id,
                template,
                build_overrides(resource),
                remediation_client,
            )
        except Exception as e:
            failed[resource_id] = f"{type(e).__name__}: {e}"
            log.error(
                f"{collector_name}: failed to remediate {resource_id}: {e}",
                extra={
                    "collector": collector_name,
                    "resource_id": resource_id,
                    "error_type": type(e).__name__,
                    **get_correlation_id_for_logging(),
                },
            )

    log.info(
        f"{collector_name}: remediated {len(cleaned)} of {len(resources)} resources "
        f"({skipped} not eligible, {len(failed)} failed)"
    )
    if failed:
        log_batched(
            log,
            f"{collector_name}.FailedCleanups",
            failed,
            batch_size=batch_size,
            level=logging.WARNING,
        )

    return cleaned
