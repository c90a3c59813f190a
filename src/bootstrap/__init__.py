"""Profile bootstrap: versioned default packs merged into the memory log."""

from .audit import AuditEvent, AuditLog
from .engine import apply_profile_plan, plan_profile
from .lifecycle import BootstrapManager, ResetConfirmationError
from .merge_policy import plan_merge_actions
from .models import MergeAction, MergePlan, MergePlanAction
from .onboarding import OnboardingQuestionnaire, OnboardingValidationError
from .profile_pack import ProfilePack, ProfilePackRegistry, UnknownProfilePackError
from .state import BootstrapState, get_bootstrap_state

__all__ = [
    "AuditEvent",
    "AuditLog",
    "BootstrapManager",
    "BootstrapState",
    "MergeAction",
    "MergePlan",
    "MergePlanAction",
    "OnboardingQuestionnaire",
    "OnboardingValidationError",
    "ProfilePack",
    "ProfilePackRegistry",
    "ResetConfirmationError",
    "UnknownProfilePackError",
    "apply_profile_plan",
    "get_bootstrap_state",
    "plan_merge_actions",
    "plan_profile",
]
