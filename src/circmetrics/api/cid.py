"""Canonical identifier (CID) paths and validation."""

import re

from circmetrics.errors import InvalidCIDError


CHECK_PREFIX = "/check"
CHECK_BUNDLE_PREFIX = "/check_bundle"
BROKER_PREFIX = "/broker"
METRIC_CLUSTER_PREFIX = "/metric_cluster"

CHECK_CID_RE = re.compile(r"^/check/[0-9]+$")
CHECK_BUNDLE_CID_RE = re.compile(r"^/check_bundle/[0-9]+$")
BROKER_CID_RE = re.compile(r"^/broker/[0-9]+$")
METRIC_CLUSTER_CID_RE = re.compile(r"^/metric_cluster/[0-9]+$")


def validate_cid(cid: str | None, pattern: re.Pattern, kind: str) -> str:
    """Return ``cid`` if it matches ``pattern``.

    Args:
        cid: Candidate CID (e.g. "/check/1234")
        pattern: Compiled regex for the resource family
        kind: Resource name used in the error message

    Raises:
        InvalidCIDError: If the CID is empty or malformed
    """
    if not cid:
        raise InvalidCIDError(f"Invalid {kind} CID [none]")
    if not pattern.match(cid):
        raise InvalidCIDError(f"Invalid {kind} CID [{cid}]")
    return cid


def cid_from_id(prefix: str, resource_id: int) -> str:
    """Build a CID from a numeric id, e.g. ``cid_from_id("/check", 5) == "/check/5"``."""
    return f"{prefix}/{resource_id}"


def id_from_cid(cid: str, prefix: str) -> int:
    """Extract the numeric id from a CID.

    Raises:
        ValueError: If the remainder after ``prefix`` is not an integer
    """
    return int(cid.replace(f"{prefix}/", "", 1))
