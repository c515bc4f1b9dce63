"""
kuu.bot.cogs.treasurer — Treasurer Game
========================================

``/treasurer group:<Green|Red|Blue|Light Purple>`` opens a private thread
for the group and walks it through the reimbursement claims one by one.
Each claim gets Accept / Needs Revision / Reject buttons; the next claim is
only sent once the current one is answered.

Rules and session state live in :mod:`kuu.engine.treasurer`; this cog only
delivers prompts and collects answers.  Any failure while doing so aborts
the session so the group can start again.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

import discord
from discord import app_commands
from discord.ext import commands

from kuu.engine.payloads import ANSWER_ACTIONS, build_payload, parse_payload
from kuu.engine.treasurer import (
    AnswerOutcome,
    GameResult,
    GroupName,
    Prompt,
    PromptAnswer,
    TreasurerGame,
)

if TYPE_CHECKING:
    from kuu.bot.core import KuuBot

logger = logging.getLogger(__name__)

ANSWER_BUTTONS: tuple[tuple[PromptAnswer, str, discord.ButtonStyle], ...] = (
    (PromptAnswer.ACCEPTED, "Accept", discord.ButtonStyle.success),
    (PromptAnswer.NEEDS_REVISION, "Needs Revision", discord.ButtonStyle.secondary),
    (PromptAnswer.REJECTED, "Reject", discord.ButtonStyle.danger),
)

ONE_WEEK_MINUTES = 10080


class AnswerNotCollectedError(RuntimeError):
    """The answer view stopped without anyone picking an answer."""


class AnswerView(discord.ui.View):
    """Answer buttons for one prompt; stops after the first valid click."""

    def __init__(self, player_id: int, prompt_index: int, timeout: float | None = None) -> None:
        super().__init__(timeout=timeout)
        self.prompt_index = prompt_index
        self.choice: PromptAnswer | None = None
        self.interaction: discord.Interaction | None = None

        for answer, label, style in ANSWER_BUTTONS:
            button = discord.ui.Button(
                label=label,
                style=style,
                custom_id=build_payload(answer.action, player_id, prompt_index),
            )
            button.callback = self._on_click
            self.add_item(button)

    async def _on_click(self, interaction: discord.Interaction) -> None:
        payload = parse_payload((interaction.data or {}).get("custom_id"))
        if (
            payload is None
            or payload.action not in ANSWER_ACTIONS
            or payload.sub_index != self.prompt_index
            or self.choice is not None
        ):
            await interaction.response.send_message(
                "That claim has already been answered.", ephemeral=True
            )
            return

        self.choice = PromptAnswer.from_action(payload.action)
        self.interaction = interaction
        self.stop()


def format_result(result: GameResult) -> str:
    plural = "" if result.points == 1 else "s"
    return (
        "Game over! You have completed all the prompts. "
        f"You got **{result.correct} correct answers**, "
        f"earning **{result.points} point{plural}**."
    )


class Treasurer(commands.Cog, name="Treasurer"):
    """Runs one treasurer game per group at a time."""

    def __init__(self, bot: KuuBot, game: TreasurerGame | None = None) -> None:
        self.bot = bot
        self.game = game or TreasurerGame()
        self._runs: dict[GroupName, asyncio.Task] = {}

    async def cog_unload(self) -> None:
        for task in self._runs.values():
            task.cancel()
        self._runs.clear()
        for group in self.game.sessions.active_groups():
            self.game.abort(group)

    # -------------------------------------------------------------------
    # /treasurer
    # -------------------------------------------------------------------
    @app_commands.command(name="treasurer", description="Start a treasurer game for the event")
    @app_commands.describe(group="The group to start the game for")
    @app_commands.choices(
        group=[app_commands.Choice(name=g.display, value=g.value) for g in GroupName]
    )
    async def treasurer(
        self,
        interaction: discord.Interaction,
        group: app_commands.Choice[str],
    ) -> None:
        await interaction.response.defer(ephemeral=True)

        channel = interaction.channel
        if interaction.channel_id != self.bot.cfg.channel_ids.event or not isinstance(
            channel, discord.TextChannel
        ):
            await interaction.followup.send(
                f"The treasurer game can only be played in <#{self.bot.cfg.channel_ids.event}>.",
                ephemeral=True,
            )
            return

        group_name = GroupName(group.value)
        # Claimed before any await so concurrent starts cannot both pass.
        if not self.game.start(group_name):
            await interaction.followup.send(
                f"A game for **{group_name.display}** is already in progress.", ephemeral=True
            )
            return

        try:
            thread = await channel.create_thread(
                name=f"{group_name.value}'s game",
                type=discord.ChannelType.private_thread,
                invitable=False,
                auto_archive_duration=ONE_WEEK_MINUTES,
            )
            await thread.add_user(interaction.user)
        except Exception:
            self.game.abort(group_name)
            logger.exception(
                "Could not open treasurer thread for group %s", group_name,
                extra={"group": group_name.value},
            )
            await interaction.followup.send(
                "Yo dazo! Something went wrong and the game could not be started.", ephemeral=True
            )
            return

        # From here the play task owns the session and releases it on every exit.
        self._runs[group_name] = asyncio.create_task(
            self.play(thread, interaction.user, group_name), name=f"treasurer-{group_name.value}"
        )
        try:
            await interaction.followup.send(
                f"Your game has started in {thread.mention}.", ephemeral=True
            )
        except discord.HTTPException:
            logger.warning(
                "Could not confirm treasurer game for group %s; it continues in thread %s",
                group_name, thread.id,
            )

    # -------------------------------------------------------------------
    # Game loop
    # -------------------------------------------------------------------
    async def play(
        self, thread: discord.Thread, player: discord.abc.User, group: GroupName
    ) -> GameResult | None:
        """Run *group*'s game to completion; the session is always released."""
        try:
            index = 0
            step = self.game.advance(group, index)
            while isinstance(step, Prompt):
                outcome = await self.ask(thread, player, group, index, step)
                index = outcome.next_index
                step = self.game.advance(group, index)

            await thread.send(format_result(step))
            await thread.edit(locked=True)
            return step
        except asyncio.CancelledError:
            self.game.abort(group)
            raise
        except Exception:
            logger.exception(
                "Treasurer game for group %s crashed", group,
                extra={"group": group.value},
            )
            if self.game.abort(group):
                await self._notify_crash(thread)
            return None
        finally:
            if self._runs.get(group) is asyncio.current_task():
                del self._runs[group]

    async def ask(
        self,
        thread: discord.Thread,
        player: discord.abc.User,
        group: GroupName,
        index: int,
        prompt: Prompt,
    ) -> AnswerOutcome:
        """Send one prompt and wait for its answer."""
        files = []
        if prompt.image_path:
            path = self.bot.cfg.events_dir / prompt.image_path
            files.append(discord.File(path, filename=path.name))

        view = AnswerView(player.id, index, timeout=self.bot.cfg.treasurer_answer_timeout)
        message = await thread.send(content=prompt.message, files=files, view=view)

        await view.wait()
        if view.choice is None or view.interaction is None:
            raise AnswerNotCollectedError(f"No answer for prompt {index}")

        outcome = self.game.submit_answer(group, index, view.choice)
        verdict = "Correct! The answer was" if outcome.correct else "Incorrect! The correct answer was"
        await view.interaction.response.send_message(f"{verdict} **{outcome.expected}**.")
        await message.edit(view=None)
        return outcome

    async def _notify_crash(self, thread: discord.Thread) -> None:
        try:
            await thread.send(
                "Yo dazo! The game ended unexpectedly. "
                "Please run `/treasurer` again to start a new one."
            )
        except discord.HTTPException:
            logger.warning("Could not tell thread %s that its game ended", thread.id)


async def setup(bot: KuuBot) -> None:
    await bot.add_cog(Treasurer(bot))
