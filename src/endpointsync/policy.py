"""Semantic comparison of endpoint policy documents."""

import json
import logging
from typing import Any

from endpointsync.constants import DEFAULT_POLICY_DOCUMENT

logger = logging.getLogger(__name__)


def declared_policy(text: str | None) -> str | None:
    """Return the policy text, or None when it is missing or blank."""
    if text is None or not text.strip():
        return None
    return text


def _load(text: str) -> Any:
    doc = json.loads(text)
    # IAM accepts a single statement object in place of a one-element list.
    if isinstance(doc, dict) and isinstance(doc.get("Statement"), dict):
        doc = {**doc, "Statement": [doc["Statement"]]}
    return doc


def policies_equal(a: str, b: str) -> bool:
    """Structural JSON equality. Malformed documents never compare equal."""
    try:
        return _load(a) == _load(b)
    except (TypeError, ValueError):
        logger.debug("Policy document is not valid JSON, treating as mismatch")
        return False


def _contains(have: Any, want: Any) -> bool:
    if isinstance(want, dict):
        if not isinstance(have, dict):
            return False
        return all(k in have and _contains(have[k], v) for k, v in want.items())
    if isinstance(want, list):
        if not isinstance(have, list):
            return False
        return all(any(_contains(h, w) for h in have) for w in want)
    if isinstance(have, list):
        # "Action": ["*"] grants the same as "Action": "*"
        return want in have
    return have == want


def policy_contains(observed: str, required: str) -> bool:
    """True when ``observed`` is an exact or superset match of ``required``.

    The match is structural, not an evaluation of what the policy allows.
    Every required statement must have an observed statement carrying the
    same keys and values; extra keys such as ``Condition`` and extra
    statements, ``Deny`` ones included, do not break the match.
    """
    try:
        return _contains(_load(observed), _load(required))
    except (TypeError, ValueError):
        logger.debug("Policy document is not valid JSON, treating as mismatch")
        return False


def matches_default(observed: str | None) -> bool:
    """True when the observed policy grants at least the default policy.

    An endpoint without any policy document (services that do not support
    endpoint policies) is considered to be running the default.
    """
    if observed is None:
        return True
    return policy_contains(observed, DEFAULT_POLICY_DOCUMENT)


def policy_up_to_date(declared: str | None, observed: str | None) -> bool:
    """Compare a declared policy against the observed one.

    Without a declared policy the observed document only has to cover the
    default; with one, the documents must be structurally identical.
    """
    declared = declared_policy(declared)
    if declared is None:
        return matches_default(observed)
    if observed is None:
        return False
    return policies_equal(declared, observed)
