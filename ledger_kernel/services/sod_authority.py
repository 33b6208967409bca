"""
ledger_kernel.services.sod_authority -- segregation-of-duties decisions.

Responsibility:
    Implements the ``Authorizer`` port from the ``sod_rules`` of a
    ``PostingPolicy``.  Answers whether a role may perform an action and
    whether the result needs sign-off from an approver role.

Invariants:
    - An action with no configured rule is refused (fail closed).
    - Role names are compared case-insensitively.
    - Never blocks on approval; approval is a flag on an allowed decision.
"""

from __future__ import annotations

from ledger_kernel.domain.policy import PostingPolicy
from ledger_kernel.domain.ports import SodDecision
from ledger_kernel.logging_config import get_logger

logger = get_logger("services.sod_authority")


class SodAuthority:

    def __init__(self, policy: PostingPolicy):
        self._policy = policy

    def check_segregation_of_duties(self, action: str, role: str) -> SodDecision:
        rule = self._policy.sod_rule(action)
        if rule is None:
            logger.warning("sod_rule_missing", extra={"action": action, "role": role})
            return SodDecision(
                allowed=False, reason=f"SoD: no rule configured for action '{action}'"
            )

        normalized = (role or "").strip().lower()
        allowed = {r.lower() for r in rule.allowed_roles}
        if normalized not in allowed:
            logger.info("sod_denied", extra={"action": action, "role": role})
            return SodDecision(
                allowed=False,
                reason=f"SoD: role '{role}' is not permitted to perform '{action}'",
            )

        if normalized in {r.lower() for r in rule.approval_required_roles}:
            logger.debug("sod_approval_required", extra={"action": action, "role": role})
            return SodDecision(
                allowed=True,
                requires_approval=True,
                reason=f"SoD: '{action}' by role '{role}' requires approval",
                approver_roles=rule.approver_roles,
            )
        return SodDecision(allowed=True)
