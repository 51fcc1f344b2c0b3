"""Job type registry used to persist jobs outside the process (redis)."""
from __future__ import annotations

import dataclasses
from typing import Any, Dict, Type

from invoicing.jobs.invitation_jobs import MarkBounced, MarkOpened

JOB_TYPES: Dict[str, Type[Any]] = {
    "MarkOpened": MarkOpened,
    "MarkBounced": MarkBounced,
}


class UnknownJobType(ValueError):
    pass


def job_to_dict(job: Any) -> Dict[str, Any]:
    job_type = type(job).__name__
    if job_type not in JOB_TYPES:
        raise UnknownJobType(job_type)
    payload = dataclasses.asdict(job)
    # str-valued enums are stored by value
    return {"job_type": job_type, "job": {k: getattr(v, "value", v) for k, v in payload.items()}}


def job_from_dict(data: Dict[str, Any]) -> Any:
    job_type = data.get("job_type")
    cls = JOB_TYPES.get(job_type)  # type: ignore[arg-type]
    if cls is None:
        raise UnknownJobType(str(job_type))
    return cls(**data.get("job", {}))


__all__ = ["JOB_TYPES", "UnknownJobType", "job_to_dict", "job_from_dict"]
