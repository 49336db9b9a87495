"""Discord UI adapter for progression notices."""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

import discord

from .config import EngineConfig
from .notifications import Notice, NoticeKind, ProgressSnapshot
from .utils import format_number, format_years

log = logging.getLogger(__name__)

NOTICE_COLOURS = {
    NoticeKind.INFO: discord.Colour.blurple(),
    NoticeKind.DEATH: discord.Colour.dark_red(),
    NoticeKind.REINCARNATION: discord.Colour.purple(),
    NoticeKind.OFFLINE: discord.Colour.teal(),
    NoticeKind.UNLOCK: discord.Colour.gold(),
    NoticeKind.ERROR: discord.Colour.red(),
}

NOTICE_EMOJI = {
    NoticeKind.INFO: "📜",
    NoticeKind.DEATH: "💀",
    NoticeKind.REINCARNATION: "🔄",
    NoticeKind.OFFLINE: "🌙",
    NoticeKind.UNLOCK: "⏳",
    NoticeKind.ERROR: "⚠️",
}


def build_notice_embed(notice: Notice) -> discord.Embed:
    embed = discord.Embed(
        title=f"{NOTICE_EMOJI.get(notice.kind, '')} {notice.title}".strip(),
        description=notice.body,
        colour=NOTICE_COLOURS.get(notice.kind, discord.Colour.blurple()),
    )
    for name, value in notice.fields:
        embed.add_field(name=name, value=value, inline=True)
    return embed


def build_progress_embed(snapshot: ProgressSnapshot) -> discord.Embed:
    embed = discord.Embed(
        title=f"{snapshot.realm_name} · Stage {snapshot.stage}/10",
        colour=discord.Colour.dark_red() if snapshot.is_dead else discord.Colour.green(),
    )
    embed.add_field(name="Qi", value=format_number(snapshot.qi), inline=True)
    embed.add_field(
        name="Next Breakthrough", value=format_number(snapshot.requirement), inline=True
    )
    embed.add_field(
        name="Qi / Click · Qi / s",
        value=f"{format_number(snapshot.qpc)} · {format_number(snapshot.qps)}",
        inline=True,
    )
    embed.add_field(
        name="Age",
        value=f"{format_years(snapshot.age)} / {format_years(snapshot.max_lifespan)}",
        inline=True,
    )
    embed.add_field(
        name="Karma",
        value=f"{format_number(snapshot.karma)} ({snapshot.reincarnations} rebirths)",
        inline=True,
    )
    speed = "Paused" if snapshot.paused else f"{snapshot.speed:g}x"
    embed.add_field(name="Time Speed", value=speed, inline=True)
    embed.set_footer(text=f"{snapshot.cycle.title()} Cycle")
    return embed


class CultivatorView(discord.ui.View):
    """Prompt controls bound to the cultivator whose run they decide.

    Presses from anyone else, or arriving after the prompt was answered,
    are turned away with an ephemeral reply.
    """

    def __init__(self, owner_id: int | None, *, timeout: float | None = None) -> None:
        super().__init__(timeout=timeout)
        self.owner_id = owner_id

    def disable(self) -> None:
        for child in self.children:
            child.disabled = True

    async def interaction_check(self, interaction: discord.Interaction) -> bool:  # type: ignore[override]
        if self.is_finished():
            await interaction.response.send_message(
                "This turning of the wheel has already been decided.", ephemeral=True
            )
            return False
        if self.owner_id is not None and interaction.user.id != self.owner_id:
            log.debug(
                "Rejected prompt press from %s; run belongs to %s",
                interaction.user.id,
                self.owner_id,
            )
            await interaction.response.send_message(
                "This prompt belongs to another cultivator's run.", ephemeral=True
            )
            return False
        return True


class AcknowledgeButton(discord.ui.Button[CultivatorView]):
    """Answers the acknowledgement prompt it is attached to."""

    def __init__(self, label: str) -> None:
        super().__init__(label=label, style=discord.ButtonStyle.primary)

    async def callback(self, interaction: discord.Interaction) -> None:  # type: ignore[override]
        view = self.view
        if isinstance(view, AcknowledgeView):
            await view.answer(interaction)


class AcknowledgeView(CultivatorView):
    """Single-button prompt resolving ``result`` once the owner continues."""

    def __init__(
        self,
        owner_id: int | None,
        *,
        label: str = "Continue",
        timeout: float | None = None,
    ) -> None:
        super().__init__(owner_id, timeout=timeout)
        self.result: asyncio.Future[bool] = asyncio.get_running_loop().create_future()
        self.message: Optional[discord.Message] = None
        self.add_item(AcknowledgeButton(label))

    def _settle(self, accepted: bool) -> None:
        if not self.result.done():
            self.result.set_result(accepted)
        self.stop()

    async def answer(self, interaction: discord.Interaction) -> None:
        self.disable()
        await interaction.response.edit_message(view=self)
        self._settle(True)

    async def on_timeout(self) -> None:
        self.disable()
        if self.message is not None:
            try:
                await self.message.edit(view=self)
            except discord.HTTPException:
                log.debug("Could not disable an expired prompt", exc_info=True)
        self._settle(False)


class DiscordNotificationChannel:
    """Posts notices to any messageable target and awaits acknowledgements."""

    def __init__(
        self,
        destination: discord.abc.Messageable,
        *,
        owner_id: int | None = None,
        confirm_timeout: float | None = None,
    ) -> None:
        self.destination = destination
        self.owner_id = owner_id
        self.confirm_timeout = confirm_timeout

    @classmethod
    def from_config(
        cls,
        destination: discord.abc.Messageable,
        config: EngineConfig,
        *,
        owner_id: int | None = None,
    ) -> "DiscordNotificationChannel":
        return cls(destination, owner_id=owner_id, confirm_timeout=config.confirm_timeout)

    async def notify(self, notice: Notice) -> None:
        try:
            await self.destination.send(embed=build_notice_embed(notice))
        except discord.HTTPException:
            log.exception("Failed to deliver notice %r", notice.title)

    async def confirm(self, notice: Notice) -> bool:
        view = AcknowledgeView(
            self.owner_id, label=notice.confirm_label, timeout=self.confirm_timeout
        )
        try:
            view.message = await self.destination.send(
                embed=build_notice_embed(notice), view=view
            )
        except discord.HTTPException:
            log.exception("Failed to deliver confirmation %r", notice.title)
            return False
        return await view.result


__all__ = [
    "AcknowledgeButton",
    "AcknowledgeView",
    "CultivatorView",
    "DiscordNotificationChannel",
    "build_notice_embed",
    "build_progress_embed",
]
