"""
kuu.services.verification_service — Onboarding & Kick Control
===============================================================

New members get the *Intro Arc* role on join and must be verified by the
committee before :attr:`KuuConfig.kick_timeout_seconds` runs out, otherwise
they are DMed and kicked.

- :func:`kick_delay` — how long a member may still wait (pure).
- :class:`KickScheduler` — one pending timer per member; re-checks the role
  when the timer fires so verified members are left alone.
- :func:`verify_member` / :func:`reject_member` — the committee buttons.
- :func:`build_verification_view` — Verify / Reject buttons for the
  committee card (``verify-<id>`` / ``reject-<id>`` payloads).
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime

import discord

from kuu.constants import KICK_NOTICE, KICK_REASON, REJECT_NOTICE, REJECT_REASON
from kuu.engine.payloads import ActionType, build_payload

logger = logging.getLogger(__name__)


def kick_delay(joined_at: datetime | None, now: datetime, timeout: float) -> float:
    """Seconds left before an unverified member is kicked; 0 means now."""
    if joined_at is None:
        return timeout
    elapsed = (now - joined_at).total_seconds()
    if elapsed > timeout:
        return 0.0
    return max(timeout - elapsed, 0.0)


def has_role(member: discord.Member, role_id: int) -> bool:
    return any(role.id == role_id for role in member.roles)


async def send_notice(member: discord.Member, content: str) -> bool:
    """DM *member*; False when their DMs are closed."""
    try:
        await member.send(content)
    except discord.HTTPException as exc:
        logger.debug("Could not DM member %s: %s", member.id, exc)
        return False
    return True


# ---------------------------------------------------------------------------
# Kick control
# ---------------------------------------------------------------------------
class KickScheduler:
    """Pending auto-kick timers, one per member.

    Parameters
    ----------
    intro_role_id:
        Members still holding this role when their timer fires are kicked.
    timeout:
        Seconds a member may stay unverified.
    """

    def __init__(self, intro_role_id: int, timeout: float) -> None:
        self.intro_role_id = intro_role_id
        self.timeout = timeout
        self._tasks: dict[int, asyncio.Task] = {}

    @property
    def pending(self) -> set[int]:
        return {member_id for member_id, task in self._tasks.items() if not task.done()}

    def schedule(self, member: discord.Member, now: datetime | None = None) -> asyncio.Task | None:
        """Start *member*'s timer from their join time.  No-op if one is pending."""
        existing = self._tasks.get(member.id)
        if existing is not None and not existing.done():
            return None

        now = now or discord.utils.utcnow()
        delay = kick_delay(member.joined_at, now, self.timeout)
        task = asyncio.get_running_loop().create_task(
            self._run(member, delay), name=f"kick-control-{member.id}"
        )
        self._tasks[member.id] = task
        logger.info("Kick control for %s in %.0fs", member.id, delay)
        return task

    def cancel(self, member_id: int) -> bool:
        task = self._tasks.pop(member_id, None)
        if task is None or task.done():
            return False
        task.cancel()
        return True

    def cancel_all(self) -> None:
        for task in self._tasks.values():
            task.cancel()
        self._tasks.clear()

    async def _run(self, member: discord.Member, delay: float) -> None:
        try:
            if delay > 0:
                await asyncio.sleep(delay)
            await self.kick_if_unverified(member)
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception(
                "Kick control failed for member %s", member.id,
                extra={"task": "kick_control", "member_id": member.id},
            )
        finally:
            if self._tasks.get(member.id) is asyncio.current_task():
                del self._tasks[member.id]

    async def kick_if_unverified(self, member: discord.Member) -> bool:
        """Refetch *member*; kick them if they still hold the intro role."""
        try:
            current = await member.guild.fetch_member(member.id)
        except discord.NotFound:
            return False  # already left

        if not has_role(current, self.intro_role_id):
            return False

        await send_notice(current, KICK_NOTICE)
        await current.kick(reason=KICK_REASON)
        logger.info("Kicked unverified member %s", current.id)
        return True


# ---------------------------------------------------------------------------
# Committee actions
# ---------------------------------------------------------------------------
async def verify_member(
    member: discord.Member,
    *,
    intro_role_id: int,
    freshie_role_id: int,
    member_role_id: int,
) -> None:
    """Swap the intro role for the freshie and member roles."""
    await member.remove_roles(discord.Object(id=intro_role_id), reason="Verified by committee")
    await member.add_roles(
        discord.Object(id=freshie_role_id),
        discord.Object(id=member_role_id),
        reason="Verified by committee",
    )
    logger.info("Verified member %s", member.id)


async def reject_member(member: discord.Member) -> None:
    """DM then kick *member*.  The DM is best-effort."""
    await send_notice(member, REJECT_NOTICE)
    await member.kick(reason=REJECT_REASON)
    logger.info("Rejected member %s", member.id)


def build_verification_view(member_id: int) -> discord.ui.View:
    """Verify / Reject buttons, dispatched by the verification cog."""
    view = discord.ui.View(timeout=None)
    view.add_item(discord.ui.Button(
        label="Verify",
        style=discord.ButtonStyle.success,
        custom_id=build_payload(ActionType.VERIFY, member_id),
    ))
    view.add_item(discord.ui.Button(
        label="Reject",
        style=discord.ButtonStyle.danger,
        custom_id=build_payload(ActionType.REJECT, member_id),
    ))
    return view
