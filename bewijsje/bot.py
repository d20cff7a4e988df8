"""
bot.py — Discord host for the bewijsje renderer.

The bot plays the part of the exercise page: it asks for name and class
through an interactive prompt, remembers them per user, and "downloads" the
rendered certificate or table by posting the PNG in the channel.

Commands are prefixed with !mr (configurable in config.py).
"""

import io
import json
import logging
from typing import Optional

import discord
from discord.ext import commands

from . import config
from .prompt import ExtendedResult, FlagToggle, NamePrompt, ask_name
from .session import download_table, finish_session
from .storage import LocalStore
from .summary import IdentitySource, PageContext

log = logging.getLogger(__name__)

FLAG_LABELS = {"dyscalculie": "Ik heb dyscalculie"}

# ── Host adapters ────────────────────────────────────────────────────────────

store = LocalStore()

# user_id -> flags from that user's last confirmed prompt
user_flags: dict[int, dict[str, bool]] = {}


def user_store(user) -> LocalStore:
    return store.scoped(str(user.id))


def page_context(channel) -> PageContext:
    """
    The channel is the "page": its name is the title and a topic line like
    ``x-game-id: telrij`` acts as the page's game id metadata.
    """
    meta = ""
    for line in (getattr(channel, "topic", None) or "").splitlines():
        key, sep, value = line.partition(":")
        if sep and key.strip().lower() == "x-game-id":
            meta = value.strip()
            break
    return PageContext(meta_game_id=meta, title=getattr(channel, "name", "") or "")


def identity_for(ctx: commands.Context) -> IdentitySource:
    return IdentitySource.from_context(store=user_store(ctx.author),
                                       page=page_context(ctx.channel))


class ChannelDownload:
    """Delivers an export by posting it as an attachment."""

    def __init__(self, channel):
        self.channel = channel

    async def __call__(self, data: bytes, filename: str):
        await self.channel.send(file=discord.File(io.BytesIO(data), filename=filename))


async def read_payload(ctx: commands.Context, text: str) -> dict:
    """JSON from the first .json attachment, else from the command text."""
    for attachment in ctx.message.attachments:
        if attachment.filename.lower().endswith(".json"):
            text = (await attachment.read()).decode("utf-8")
            break
    return parse_payload(text)


def parse_payload(text: str) -> dict:
    text = (text or "").strip()
    if text.startswith("```"):
        text = text.strip("`")
        if text.startswith("json"):
            text = text[4:]
    if not text:
        return {}
    try:
        data = json.loads(text)
    except ValueError as e:
        raise commands.BadArgument(f"Geen geldige JSON: {e}") from e
    if not isinstance(data, dict):
        raise commands.BadArgument("Verwacht een JSON-object, bv. {\"score\": 7}.")
    return data


# ── Prompt UI ────────────────────────────────────────────────────────────────

def prompt_embed(prompt: NamePrompt) -> discord.Embed:
    embed = discord.Embed(
        title=prompt.title,
        description="Vul je naam en klas in en klik **Start**.",
        color=0x2563eb,
    )
    embed.add_field(name="Naam", value=prompt.name or "—", inline=True)
    embed.add_field(name="Klas", value=prompt.klass or "—", inline=True)
    for flag in prompt.extra_flags:
        mark = "✅" if prompt.flags.get(flag.id) else "⬜"
        embed.add_field(name=flag.label or flag.id, value=mark, inline=False)
    return embed


class NameModal(discord.ui.Modal):
    """Name/class form. Submitting it is the prompt's Enter key."""

    def __init__(self, view: "PromptView"):
        super().__init__(title=view.prompt.title)
        self.prompt_view = view
        self.name_input = discord.ui.TextInput(
            label="Naam", default=view.prompt.name or None, max_length=80)
        self.class_input = discord.ui.TextInput(
            label="Klas (bv. 2B)", default=view.prompt.klass or None,
            required=False, max_length=20)
        self.add_item(self.name_input)
        self.add_item(self.class_input)

    async def on_submit(self, interaction: discord.Interaction):
        prompt = self.prompt_view.prompt
        prompt.set_name(self.name_input.value)
        prompt.set_class(self.class_input.value)
        prompt.press("Enter")
        await self.prompt_view.refresh(interaction)


class PromptView(discord.ui.View):
    """Buttons for one ``NamePrompt``; only its owner may press them."""

    def __init__(self, prompt: NamePrompt, owner_id: int):
        super().__init__(timeout=None)
        self.prompt = prompt
        self.owner_id = owner_id

        self.add_button("Naam & klas", discord.ButtonStyle.secondary, self.on_edit)
        for flag in prompt.extra_flags:
            self.add_button(flag.label or flag.id, self.flag_style(flag.id),
                            self.flag_handler(flag.id), custom_id=f"flag:{flag.id}")
        self.add_button("Annuleer", discord.ButtonStyle.danger, self.on_cancel)
        self.add_button("Start", discord.ButtonStyle.primary, self.on_start)
        prompt.add_listener(self.stop)

    def add_button(self, label, style, callback, custom_id: Optional[str] = None):
        button = discord.ui.Button(label=label[:80], style=style, custom_id=custom_id)
        button.callback = callback
        self.add_item(button)

    def flag_style(self, flag_id: str) -> discord.ButtonStyle:
        return discord.ButtonStyle.success if self.prompt.flags.get(flag_id) \
            else discord.ButtonStyle.secondary

    def flag_handler(self, flag_id: str):
        async def callback(interaction: discord.Interaction):
            self.prompt.toggle(flag_id)
            for item in self.children:
                if getattr(item, "custom_id", None) == f"flag:{flag_id}":
                    item.style = self.flag_style(flag_id)
            await self.refresh(interaction)
        return callback

    async def interaction_check(self, interaction: discord.Interaction) -> bool:
        if interaction.user.id != self.owner_id:
            await interaction.response.send_message(
                "Deze vraag is niet voor jou.", ephemeral=True)
            return False
        return True

    async def refresh(self, interaction: discord.Interaction):
        if self.prompt.closed:
            for item in self.children:
                item.disabled = True
        await interaction.response.edit_message(embed=prompt_embed(self.prompt), view=self)

    async def on_edit(self, interaction: discord.Interaction):
        await interaction.response.send_modal(NameModal(self))

    async def on_cancel(self, interaction: discord.Interaction):
        self.prompt.press("Escape")
        await self.refresh(interaction)

    async def on_start(self, interaction: discord.Interaction):
        if not self.prompt.confirm():
            # empty name: back to the name field
            await interaction.response.send_modal(NameModal(self))
            return
        await self.refresh(interaction)


# ── Discord Bot ──────────────────────────────────────────────────────────────

intents = discord.Intents.default()
intents.message_content = True

bot = commands.Bot(command_prefix=config.COMMAND_PREFIX, intents=intents,
                   help_command=None)


@bot.event
async def on_ready():
    log.info("Logged in as %s (ID: %s)", bot.user, bot.user.id)
    await bot.change_presence(activity=discord.Game(name="bewijsjes | !mr help"))


@bot.command(name="help")
async def mr_help(ctx: commands.Context):
    embed = discord.Embed(title="📜 Bewijsje — Commando's", color=0x0b132b)
    embed.add_field(name="Start", inline=False, value=(
        "**`!mr start [taak|toets] [dyscalculie]`** — naam en klas opgeven\n"
        "**`!mr wie`** — toon je bewaarde naam en klas"
    ))
    embed.add_field(name="Afronden", inline=False, value=(
        "**`!mr bewijs {json}`** — bewijsje maken (of voeg een .json toe)\n"
        "**`!mr tabel {json}`** — tabel-export met `meta`, `table` en `filename`"
    ))
    await ctx.send(embed=embed)


@bot.command(name="start")
async def mr_start(ctx: commands.Context, mode: str = "taak", *flag_ids: str):
    toggles = [FlagToggle(id=f, label=FLAG_LABELS.get(f, f)) for f in flag_ids]

    async def show(prompt: NamePrompt):
        await ctx.send(embed=prompt_embed(prompt), view=PromptView(prompt, ctx.author.id))

    result = await ask_name(mode, {"extraFlags": toggles},
                            store=user_store(ctx.author), present=show)
    if result is None:
        return await ctx.send("Geannuleerd.")
    if isinstance(result, ExtendedResult):
        user_flags[ctx.author.id] = dict(result.flags)
        klass = f" ({result.klass})" if result.klass else ""
        return await ctx.send(f"Veel succes, **{result.name}**{klass}!")
    await ctx.send(f"Veel succes, **{result.name}**!")


@bot.command(name="wie")
async def mr_who(ctx: commands.Context):
    s = user_store(ctx.author)
    name = s.get(config.STORE_NAME_KEY) or "—"
    klass = s.get(config.STORE_CLASS_KEY) or "—"
    await ctx.send(f"Naam: **{name}** · Klas: **{klass}**")


@bot.command(name="bewijs")
async def mr_proof(ctx: commands.Context, *, payload: str = ""):
    raw = await read_payload(ctx, payload)
    if "flags" not in raw and ctx.author.id in user_flags:
        raw["flags"] = user_flags[ctx.author.id]
    result = await finish_session(raw, download=ChannelDownload(ctx.channel),
                                  identity=identity_for(ctx))
    log.info("Sent %s to #%s", result.filename, getattr(ctx.channel, "name", "?"))


@bot.command(name="tabel")
async def mr_table(ctx: commands.Context, *, payload: str = ""):
    opts = await read_payload(ctx, payload)
    meta = opts.get("meta") if isinstance(opts.get("meta"), dict) else {}
    table = opts.get("table") if isinstance(opts.get("table"), dict) else {}
    await download_table(meta, table, opts.get("filename"),
                         download=ChannelDownload(ctx.channel),
                         identity=identity_for(ctx))


# ── Error handling ───────────────────────────────────────────────────────────

@bot.event
async def on_command_error(ctx: commands.Context, error):
    if isinstance(error, commands.CommandNotFound):
        return  # ignore unknown commands
    error = getattr(error, "original", error)
    if isinstance(error, commands.BadArgument):
        return await ctx.send(f"⚠️ {error}")
    raise error
