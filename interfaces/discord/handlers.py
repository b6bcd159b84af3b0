from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Tuple

import discord
from discord import app_commands
from discord.ext import commands

from application.dispatcher import (
    ButtonClick,
    Dispatcher,
    InteractionEvent,
    InteractionReply,
    ModalSubmit,
    SlashCommand,
    SlashCommandHandler,
)

logger = logging.getLogger(__name__)

BET_INPUT_ID = "sub"
MODAL_TIMEOUT = 600
VIEW_TIMEOUT = 900


def _modal_value(data: Dict[str, Any]) -> Tuple[str, str]:
    """Pull the modal custom_id and the bet text out of raw interaction data."""

    custom_id = str(data.get("custom_id", ""))
    for row in data.get("components", []):
        for component in row.get("components", []):
            if component.get("custom_id") == BET_INPUT_ID:
                return custom_id, str(component.get("value", ""))
    return custom_id, ""


def _to_event(interaction: discord.Interaction) -> Optional[InteractionEvent]:
    data = interaction.data or {}
    acting_user = str(interaction.user.id)

    if interaction.type == discord.InteractionType.component:
        return ButtonClick(acting_user=acting_user, token=str(data.get("custom_id", "")))
    if interaction.type == discord.InteractionType.modal_submit:
        custom_id, value = _modal_value(data)
        return ModalSubmit(acting_user=acting_user, token=custom_id, value=value)
    return None


def _build_modal(reply: InteractionReply) -> discord.ui.Modal:
    prompt = reply.modal
    modal = discord.ui.Modal(title=prompt.title, custom_id=prompt.token, timeout=MODAL_TIMEOUT)
    modal.add_item(
        discord.ui.TextInput(
            label=prompt.input_label,
            custom_id=BET_INPUT_ID,
            style=discord.TextStyle.short,
            min_length=1,
            required=True,
        )
    )
    return modal


def _build_view(reply: InteractionReply) -> Optional[discord.ui.View]:
    if not reply.buttons:
        return None

    # Clicks are routed by `on_interaction`, not by button callbacks.
    view = discord.ui.View(timeout=VIEW_TIMEOUT)
    for button in reply.buttons:
        style = discord.ButtonStyle.danger if button.label == "START" else discord.ButtonStyle.primary
        view.add_item(discord.ui.Button(label=button.label, custom_id=button.token, style=style))
    return view


async def send_reply(interaction: discord.Interaction, reply: Optional[InteractionReply]) -> None:
    """Render an `InteractionReply` as a Discord response."""

    if reply is None:
        # Silently acknowledge so the client does not show an error.
        await interaction.response.defer()
        return

    if reply.modal is not None:
        await interaction.response.send_modal(_build_modal(reply))
        return

    kwargs: Dict[str, Any] = {"ephemeral": reply.ephemeral}
    if reply.title:
        colour = discord.Color.blue() if reply.success else discord.Color.red()
        kwargs["embed"] = discord.Embed(title=reply.title, description=reply.text, color=colour)
    else:
        kwargs["content"] = reply.text

    view = _build_view(reply)
    if view is not None:
        kwargs["view"] = view
    await interaction.response.send_message(**kwargs)


async def _handle(
    dispatcher: Dispatcher,
    interaction: discord.Interaction,
    event: InteractionEvent,
) -> None:
    try:
        reply = await dispatcher.dispatch(event)
    except Exception:
        logger.exception("Unhandled error while handling %r", event)
        if not interaction.response.is_done():
            await interaction.response.send_message("Something went wrong.", ephemeral=True)
        return
    await send_reply(interaction, reply)


def _slash_command(dispatcher: Dispatcher, handler: SlashCommandHandler) -> app_commands.Command:
    command_name = handler.name

    if command_name == "setname":

        async def setname_callback(interaction: discord.Interaction, name: str) -> None:
            event = SlashCommand(
                name=command_name,
                acting_user=str(interaction.user.id),
                options={"name": name},
            )
            await _handle(dispatcher, interaction, event)

        return app_commands.Command(
            name=command_name,
            description=handler.description,
            callback=setname_callback,
        )

    async def callback(interaction: discord.Interaction) -> None:
        event = SlashCommand(name=command_name, acting_user=str(interaction.user.id))
        await _handle(dispatcher, interaction, event)

    return app_commands.Command(
        name=command_name,
        description=handler.description,
        callback=callback,
    )


def create_discord_bot(dispatcher: Dispatcher) -> commands.Bot:
    """
    Configure and return a Discord bot wired to the dispatcher.

    This module contains only Discord-specific concerns: registering slash
    commands, turning interactions into dispatcher events and rendering
    replies as messages, buttons and modals.
    """

    intents = discord.Intents.default()
    bot = commands.Bot(command_prefix="!", intents=intents, help_command=None)

    for handler in dispatcher.registry.slash_commands.values():
        bot.tree.add_command(_slash_command(dispatcher, handler))

    @bot.event
    async def setup_hook():
        synced = await bot.tree.sync()
        logger.info("Synced %d slash commands", len(synced))

    @bot.event
    async def on_ready():
        logger.info("Discord bot logged in as %s (id=%s)", bot.user, bot.user.id)

    @bot.event
    async def on_interaction(interaction: discord.Interaction):
        # Slash commands are handled by the command tree.
        event = _to_event(interaction)
        if event is None:
            return
        await _handle(dispatcher, interaction, event)

    return bot
