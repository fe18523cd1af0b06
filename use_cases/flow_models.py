"""Value types shared by the identity flow orchestrator and its coordinators."""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Literal, Optional, Tuple, Union

from identity import InvalidIdentifierError


class FlowVariant(str, Enum):
    SIGNIN = "signin"
    SIGNUP = "signup"


class AuthenticationType(str, Enum):
    PASSWORD = "password"
    PASSWORDLESS = "passwordless"


class IdentifierType(str, Enum):
    EMAIL = "email"
    PHONE = "phone"


class MethodType(str, Enum):
    EMAIL = "email"
    PHONE = "phone"
    PASSWORD = "password"


EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
PHONE_PATTERN = re.compile(r"^\+\d{8,15}$")


@dataclass(frozen=True)
class Identifier:
    value: str
    type: IdentifierType = IdentifierType.EMAIL

    @classmethod
    def parse(cls, raw: str, identifier_type: IdentifierType) -> "Identifier":
        value = (raw or "").strip()
        if identifier_type == IdentifierType.EMAIL:
            value = value.lower()
            if not EMAIL_PATTERN.match(value):
                raise InvalidIdentifierError("Invalid e-mail address", title="Check your e-mail address")
        else:
            value = value.replace(" ", "")
            if not PHONE_PATTERN.match(value):
                raise InvalidIdentifierError("Invalid phone number", title="Check your phone number")
        return cls(value=value, type=identifier_type)

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class LoginMethod:
    """How the identifier is collected and which authentication follows it.

    The prefilled variants only seed the identifier step; the user can still
    edit the value before submitting it.
    """

    method_type: MethodType
    prefilled_value: Optional[str] = None

    @classmethod
    def email(cls) -> "LoginMethod":
        return cls(MethodType.EMAIL)

    @classmethod
    def email_prefilled(cls, value: str) -> "LoginMethod":
        return cls(MethodType.EMAIL, value)

    @classmethod
    def phone(cls) -> "LoginMethod":
        return cls(MethodType.PHONE)

    @classmethod
    def phone_prefilled(cls, value: str) -> "LoginMethod":
        return cls(MethodType.PHONE, value)

    @classmethod
    def password(cls) -> "LoginMethod":
        return cls(MethodType.PASSWORD)

    @classmethod
    def password_prefilled_email(cls, value: str) -> "LoginMethod":
        return cls(MethodType.PASSWORD, value)

    @property
    def authentication_type(self) -> AuthenticationType:
        if self.method_type == MethodType.PASSWORD:
            return AuthenticationType.PASSWORD
        return AuthenticationType.PASSWORDLESS

    @property
    def identifier_type(self) -> IdentifierType:
        if self.method_type == MethodType.PHONE:
            return IdentifierType.PHONE
        return IdentifierType.EMAIL


@dataclass(frozen=True)
class User:
    uuid: str
    user_id: Optional[str] = None
    email: Optional[str] = None
    persistent: bool = False


@dataclass(frozen=True)
class IdentifierStatus:
    available: bool


@dataclass(frozen=True)
class Terms:
    platform_url: str
    summary: str = ""


# --- Routes (parsed from deep links) ---

@dataclass(frozen=True)
class Login:
    @property
    def login_method(self) -> LoginMethod:
        return LoginMethod.email()


@dataclass(frozen=True)
class EnterPassword:
    identifier: str
    scopes: Tuple[str, ...] = ()

    @property
    def login_method(self) -> LoginMethod:
        return LoginMethod.password_prefilled_email(self.identifier)


@dataclass(frozen=True)
class ValidateAuthCode:
    code: str
    persist_user: bool = False

    @property
    def login_method(self) -> LoginMethod:
        return LoginMethod.email()


Route = Union[Login, EnterPassword, ValidateAuthCode]


# --- Launch payloads (handled headless by the host app) ---

@dataclass(frozen=True)
class AfterForgotPassword:
    pass


@dataclass(frozen=True)
class CodeAfterSignup:
    code: str
    should_persist_user: bool = False


@dataclass(frozen=True)
class CodeAfterUnvalidatedLogin:
    code: str


LaunchPayload = Union[AfterForgotPassword, CodeAfterSignup, CodeAfterUnvalidatedLogin]


# --- Orchestrator input ---

@dataclass(frozen=True)
class ByLoginMethod:
    method: LoginMethod
    presenting_surface: Any
    teaser_text: Optional[str] = None
    scopes: Tuple[str, ...] = ()


@dataclass(frozen=True)
class ByRoute:
    route: Route
    presenting_surface: Any


FlowInput = Union[ByLoginMethod, ByRoute]


# --- Results ---

class FlowStatus(str, Enum):
    SUCCESS = "SUCCESS"
    CANCEL = "CANCEL"
    NOT_STARTED = "NOT_STARTED"
    ONLY_DISMISS = "ONLY_DISMISS"


@dataclass(frozen=True)
class FlowOutput:
    """Terminal result of one orchestrator run. Delivered exactly once."""

    status: FlowStatus
    user: Optional[User] = None

    @classmethod
    def success(cls, user: User) -> "FlowOutput":
        return cls(FlowStatus.SUCCESS, user)


class CoordinatorStatus(str, Enum):
    SUCCESS = "SUCCESS"
    CANCEL = "CANCEL"
    BACK = "BACK"
    CHANGE_IDENTIFIER = "CHANGE_IDENTIFIER"
    RESET = "RESET"
    ERROR = "ERROR"


@dataclass(frozen=True)
class CoordinatorOutput:
    status: CoordinatorStatus
    user: Optional[User] = None
    error: Optional[Exception] = None


class RouteHandleResult(str, Enum):
    HANDLED = "HANDLED"
    RESET_REQUEST = "RESET_REQUEST"
    CANNOT_HANDLE = "CANNOT_HANDLE"


DispositionAction = Literal["CONTINUE", "ABORT", "SHOW_ERROR"]


@dataclass(frozen=True)
class Disposition:
    """Delegate decision taken right after the flow variant is known."""

    action: DispositionAction = "CONTINUE"
    should_dismiss: bool = False
    title: Optional[str] = None
    description: Optional[str] = None

    @classmethod
    def cont(cls) -> "Disposition":
        return cls("CONTINUE")

    @classmethod
    def abort(cls, should_dismiss: bool) -> "Disposition":
        return cls("ABORT", should_dismiss=should_dismiss)

    @classmethod
    def show_error(cls, title: str, description: str) -> "Disposition":
        return cls("SHOW_ERROR", title=title, description=description)


class UIResultStatus(str, Enum):
    COMPLETED = "COMPLETED"
    CANCELED = "CANCELED"


@dataclass(frozen=True)
class IdentityUIResult:
    status: UIResultStatus
    user: Optional[User] = None


@dataclass(frozen=True)
class AuthenticationInput:
    identifier: Identifier
    flow_variant: FlowVariant
    scopes: Tuple[str, ...] = ()
