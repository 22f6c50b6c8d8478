"""Miscellaneous commands: latency check and the command listing."""

from __future__ import annotations

from . import emojis
from .client import Module
from .commands import Command, CommandContext
from .embed import Embed
from .text import format_text

HELP_COLOR = 0x7289DA

# Modules listed by the help command; point this at the client's module list.
MODULES: list[Module] = []


def help_command(ctx: CommandContext) -> None:
    """Reply privately with every module that has commands, and its commands."""
    embed = Embed().set_color(HELP_COLOR)
    for module in MODULES:
        if not module.commands:
            continue
        listing = "".join(
            format_text("`/%s` - %s\n", command.name, command.description)
            for command in module.commands
        )
        embed.add_field(format_text("%s %s", module.emote, module.name), listing, False)
    ctx.ephemeral().reply(embed)


def ping_command(ctx: CommandContext) -> None:
    """Reply with the gateway latency, measured in seconds by the session."""
    latency = ctx.client.latency()
    if latency <= 0:
        ctx.reply(emojis.PING_PONG, "Não há medições de latência suficientes ainda ;(")
        return
    ctx.reply(emojis.PING_PONG, "Pong, %dms.", int(latency * 1000))


def build_misc_module() -> Module:
    """Return the module holding the miscellaneous commands."""
    return Module(
        name="Miscelânea",
        emote=emojis.PEER,
        commands=[
            Command(
                name="ping",
                description="Mostra uma média da latência do bot para os servidores do Discord",
                handler=ping_command,
            ),
            Command(name="ajuda", description="Pagina de comandos", handler=help_command),
        ],
        events=[],
    )