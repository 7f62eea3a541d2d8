"""
Conversion of GitHub Actions workflow YAML into the structural views used by
the actions report.

A workflow is read twice, once as a jobs/steps view and once as a
permissions view. Each conversion is independent: a shape error in one view
does not prevent the other from being produced.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import yaml

from .exceptions import WorkflowParseError
from .models import (
    AmbiguousJob,
    EmptyJob,
    Job,
    JobsView,
    MappingPermissions,
    ParsedWorkflow,
    Permissions,
    PermissionsView,
    ReusableJob,
    ScalarPermissions,
    Step,
    StepsJob,
)

logger = logging.getLogger(__name__)


def _load_document(text: Optional[str]) -> Dict[Any, Any]:
    try:
        document = yaml.safe_load(text) if text else None
    except yaml.YAMLError as e:
        raise WorkflowParseError(f"invalid YAML: {e}") from e
    if document is None:
        return {}
    if not isinstance(document, dict):
        raise WorkflowParseError(f"workflow must be a mapping, got {type(document).__name__}")
    return document


def _job_mappings(document: Dict[Any, Any]) -> Dict[str, Dict[Any, Any]]:
    jobs = document.get("jobs")
    if jobs is None:
        return {}
    if not isinstance(jobs, dict):
        raise WorkflowParseError(f"'jobs' must be a mapping, got {type(jobs).__name__}")

    result: Dict[str, Dict[Any, Any]] = {}
    for job_id, job in jobs.items():
        if job is None:
            job = {}
        if not isinstance(job, dict):
            raise WorkflowParseError(f"job '{job_id}' must be a mapping, got {type(job).__name__}")
        result[str(job_id)] = job
    return result


def _uses_value(value: Any, where: str) -> Optional[str]:
    if value is None or isinstance(value, str):
        return value
    raise WorkflowParseError(f"'uses' of {where} must be a string, got {type(value).__name__}")


def _decode_job(job_id: str, job: Dict[Any, Any]) -> Job:
    uses = _uses_value(job.get("uses"), f"job '{job_id}'")
    raw_steps = job.get("steps")
    if raw_steps is not None and not isinstance(raw_steps, list):
        raise WorkflowParseError(f"'steps' of job '{job_id}' must be a list")

    if raw_steps is not None and uses is not None:
        return AmbiguousJob()
    if uses is not None:
        return ReusableJob(uses=uses)
    if raw_steps is None:
        return EmptyJob()

    steps = []
    for index, step in enumerate(raw_steps):
        if not isinstance(step, dict):
            raise WorkflowParseError(f"step {index} of job '{job_id}' must be a mapping")
        steps.append(Step(uses=_uses_value(step.get("uses"), f"step {index} of job '{job_id}'")))
    return StepsJob(steps=tuple(steps))


def _render_level(value: Any) -> str:
    return "" if value is None else str(value)


def decode_permissions(value: Any) -> Optional[Permissions]:
    """Decode a ``permissions`` value; shapes other than scalar or mapping yield None."""
    if isinstance(value, str):
        return ScalarPermissions(value)
    if isinstance(value, dict):
        return MappingPermissions(tuple((str(k), _render_level(v)) for k, v in value.items()))
    return None


def parse_jobs_view(text: Optional[str]) -> JobsView:
    """Convert workflow text into its jobs/steps view.

    Raises:
        WorkflowParseError: Invalid YAML or an unexpected jobs/steps/uses shape
    """
    document = _load_document(text)
    return JobsView(jobs={job_id: _decode_job(job_id, job) for job_id, job in _job_mappings(document).items()})


def parse_permissions_view(text: Optional[str]) -> PermissionsView:
    """Convert workflow text into its workflow- and job-level permissions view.

    Raises:
        WorkflowParseError: Invalid YAML or an unexpected jobs shape
    """
    document = _load_document(text)
    return PermissionsView(
        workflow=decode_permissions(document.get("permissions")),
        jobs={job_id: decode_permissions(job.get("permissions")) for job_id, job in _job_mappings(document).items()},
    )


def parse_workflow(text: Optional[str], repository: str, path: str) -> ParsedWorkflow:
    """Parse both views of a workflow, logging and dropping the view that fails."""
    parsed = ParsedWorkflow()
    try:
        parsed.jobs = parse_jobs_view(text)
    except WorkflowParseError as e:
        logger.warning(f"Skipping action uses of {repository} {path}: {e}")
    try:
        parsed.permissions = parse_permissions_view(text)
    except WorkflowParseError as e:
        logger.warning(f"Skipping permissions of {repository} {path}: {e}")
    return parsed
