"""Application layer: identity flow orchestration and its building blocks."""

from .flow_context import FlowContext
from .flow_models import (
    ByLoginMethod,
    ByRoute,
    Disposition,
    EnterPassword,
    FlowOutput,
    FlowStatus,
    FlowVariant,
    IdentityUIResult,
    Login,
    LoginMethod,
    RouteHandleResult,
    User,
    ValidateAuthCode,
)
from .identity_flow import IdentityFlow

__all__ = [
    "ByLoginMethod",
    "ByRoute",
    "Disposition",
    "EnterPassword",
    "FlowContext",
    "FlowOutput",
    "FlowStatus",
    "FlowVariant",
    "IdentityFlow",
    "IdentityUIResult",
    "Login",
    "LoginMethod",
    "RouteHandleResult",
    "User",
    "ValidateAuthCode",
]
