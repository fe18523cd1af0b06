"""Async wrappers around the blocking identity manager.

Each call runs the manager method in the context loop's executor and resumes
on the loop, so callers stay confined to the flow context.
"""

import asyncio
import functools
import logging

from use_cases.flow_models import Identifier, IdentifierStatus, User

log = logging.getLogger(__name__)


class IdentityInteractor:
    def __init__(self, identity_manager):
        self.identity_manager = identity_manager

    async def call(self, method_name: str, *args, **kwargs):
        method = getattr(self.identity_manager, method_name)
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, functools.partial(method, *args, **kwargs))


class FetchStatusInteractor(IdentityInteractor):
    async def fetch_status(self, identifier: Identifier) -> IdentifierStatus:
        status = await self.call("fetch_status", identifier)
        log.debug(f"Status for {identifier.type.value} identifier: available={status.available}")
        return status


class AuthenticationCodeInteractor(IdentityInteractor):
    async def validate(self, code: str, persist_user: bool) -> User:
        return await self.call("validate_auth_code", code, persist_user)
