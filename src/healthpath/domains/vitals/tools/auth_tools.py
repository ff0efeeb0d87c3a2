"""MCP tools for account sign-up, sign-in and profile access."""

from __future__ import annotations

import json
import logging
from dataclasses import asdict
from typing import TYPE_CHECKING

from fastmcp import Context, FastMCP

from healthpath.core.auth.identity import AuthError

if TYPE_CHECKING:
    from healthpath.core.auth.identity import AuthService

logger = logging.getLogger(__name__)


def _auth_failure(exc: AuthError) -> str:
    return json.dumps({"status": "error", "code": exc.code, "message": exc.message})


def register_auth_tools(mcp: FastMCP, auth: AuthService) -> None:
    """Register identity tools on the MCP server."""

    @mcp.tool
    async def sign_up(ctx: Context, email: str, password: str, display_name: str) -> str:
        """Create an account.

        Args:
            email: Email address.
            password: At least 6 characters.
            display_name: Name shown in the app.
        """
        try:
            profile = await auth.sign_up(email, password, display_name)
        except AuthError as exc:
            return _auth_failure(exc)
        return json.dumps({"status": "created", "user": asdict(profile)})

    @mcp.tool
    async def sign_in(ctx: Context, email: str, password: str) -> str:
        """Sign in and receive your account id for the vitals tools.

        Args:
            email: Email address.
            password: Account password.
        """
        try:
            profile = await auth.sign_in(email, password)
        except AuthError as exc:
            return _auth_failure(exc)
        return json.dumps({"status": "signed_in", "user": asdict(profile)})

    @mcp.tool
    async def sign_out(ctx: Context, user_id: str) -> str:
        """Sign out.

        Args:
            user_id: Account id returned by sign_in.
        """
        try:
            await auth.sign_out(user_id)
        except AuthError as exc:
            return _auth_failure(exc)
        return json.dumps({"status": "signed_out"})

    @mcp.tool
    async def reset_password(ctx: Context, email: str) -> str:
        """Request a password reset for an account.

        Args:
            email: Email address of the account.
        """
        try:
            await auth.reset_password(email)
        except AuthError as exc:
            return _auth_failure(exc)
        return json.dumps({
            "status": "reset_requested",
            "message": "Password reset requested. Check your email for instructions.",
        })

    @mcp.tool
    async def get_user_profile(ctx: Context, user_id: str) -> str:
        """Load your account profile.

        Args:
            user_id: Account id returned by sign_in.
        """
        try:
            profile = await auth.get_profile(user_id)
        except AuthError as exc:
            return _auth_failure(exc)
        if profile is None:
            return json.dumps({"status": "not_found", "user_id": user_id})
        return json.dumps({"status": "ok", "user": asdict(profile)})
