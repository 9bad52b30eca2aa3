"""Tests for actor scope and authorization."""

import pytest

from approval_kernel.domain.actor import Actor, authorize
from approval_kernel.domain.workflow import Action, Tier
from approval_kernel.exceptions import PermissionDeniedError

BRANCH_A = "abidjan-plateau"
BRANCH_B = "bouake-centre"


class TestScopeVisibility:

    def test_branch_actor_is_scope_bound(self, branch_manager):
        assert branch_manager.is_scope_bound
        assert branch_manager.can_see_scope(BRANCH_A)
        assert not branch_manager.can_see_scope(BRANCH_B)
        assert not branch_manager.can_see_scope(None)

    @pytest.mark.parametrize("tier", [Tier.CENTRAL, Tier.FINANCE, Tier.ADMIN])
    def test_head_office_tiers_see_every_scope(self, tier):
        actor = Actor("head.office", tier)
        assert not actor.is_scope_bound
        assert actor.can_see_scope(BRANCH_B)
        assert actor.can_see_scope(None)


class TestAuthorize:

    def test_branch_approves_inside_own_branch(self, branch_manager):
        authorize(branch_manager, Action.BRANCH_APPROVE, BRANCH_A)

    def test_branch_denied_outside_own_branch(self, other_branch_manager):
        with pytest.raises(PermissionDeniedError) as exc_info:
            authorize(other_branch_manager, Action.BRANCH_APPROVE, BRANCH_A)
        assert exc_info.value.actor_id == "branch.bouake"
        assert "scope" in exc_info.value.reason

    def test_branch_cannot_pay(self, branch_manager):
        with pytest.raises(PermissionDeniedError) as exc_info:
            authorize(branch_manager, Action.PAY, BRANCH_A)
        assert exc_info.value.required_tier == "finance"
        assert exc_info.value.actor_tier == "branch"

    def test_central_acts_on_any_branch(self, central):
        authorize(central, Action.BRANCH_REJECT, BRANCH_B)
        authorize(central, Action.CENTRAL_APPROVE, None)

    def test_finance_cannot_central_approve(self, finance):
        with pytest.raises(PermissionDeniedError):
            authorize(finance, Action.CENTRAL_APPROVE, BRANCH_A)

    def test_submitter_cannot_approve_own_branch(self, submitter):
        with pytest.raises(PermissionDeniedError):
            authorize(submitter, Action.BRANCH_APPROVE, BRANCH_A)

    def test_admin_may_do_anything(self, admin):
        for action in Action:
            authorize(admin, action, BRANCH_B)
