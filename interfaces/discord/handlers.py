from __future__ import annotations

import logging

import discord
from discord.ext import commands

from application.services import EconomyService
from domain.exceptions import ValidationError
from domain.models import LEADERBOARD_SORT_KEYS
from interfaces.messages import (
    format_balance,
    format_bank,
    format_daily,
    format_leaderboard,
    format_transfer,
)


PLATFORM = "discord"

logger = logging.getLogger(__name__)


def _display_name(user: discord.abc.User) -> str:
    return user.display_name or user.name


def create_discord_bot(
    service: EconomyService,
    daily_reward: int = 100,
    leaderboard_size: int = 10,
) -> commands.Bot:
    """
    Configure and return a Discord bot exposing the economy commands.

    Handlers only translate between Discord objects and `EconomyService`
    calls; every account is keyed by the member's Discord ID.
    """

    intents = discord.Intents.default()
    intents.message_content = True
    intents.guilds = True
    intents.members = True

    # Disable the default help command so we can provide our own `!help`.
    bot = commands.Bot(command_prefix="!", intents=intents, help_command=None)

    @bot.event
    async def on_ready():
        logger.info("Discord bot logged in", extra={"bot_user": str(bot.user)})

    @bot.event
    async def on_command_error(ctx: commands.Context, error: commands.CommandError):
        original = getattr(error, "original", error)
        if isinstance(original, ValidationError):
            await ctx.send(str(original))
            return
        if isinstance(error, (commands.BadArgument, commands.MissingRequiredArgument)):
            await ctx.send(f"{error} Type !help to see usage.")
            return
        if isinstance(error, commands.MissingPermissions):
            await ctx.send("You are not allowed to use this command.")
            return
        if isinstance(error, commands.CommandNotFound):
            return
        logger.error("Command failed", exc_info=original, extra={"command": str(ctx.command)})
        await ctx.send("Something went wrong, please try again later.")

    @bot.command(name="start")
    async def start_cmd(ctx: commands.Context):
        await ctx.send(
            "Welcome to the economy bot!\n"
            "Use !daily to claim free coins and !deposit to keep them safe.\n"
            "Type !help to see available commands."
        )

    @bot.command(name="help")
    async def help_cmd(ctx: commands.Context):
        await ctx.send(
            "!balance [@member]          - show wallet, bank and net worth\n"
            "!daily                      - claim your daily reward\n"
            "!deposit <amount|all>       - move coins from wallet to bank\n"
            "!withdraw <amount|all>      - move coins from bank to wallet\n"
            "!pay @member <amount>       - send coins to another member\n"
            "!top [wallet|bank|total]    - show the richest members\n"
        )

    @bot.command(name="balance", aliases=["bal"])
    async def balance_cmd(ctx: commands.Context, member: discord.Member | None = None):
        target = member or ctx.author
        result = service.balance(str(target.id), PLATFORM)
        await ctx.send(format_balance(_display_name(target), result))

    @bot.command(name="daily")
    async def daily_cmd(ctx: commands.Context):
        result = service.daily(str(ctx.author.id), PLATFORM, daily_reward)
        await ctx.send(format_daily(result))

    @bot.command(name="deposit", aliases=["dep"])
    async def deposit_cmd(ctx: commands.Context, amount: str):
        result = service.deposit(str(ctx.author.id), PLATFORM, amount)
        await ctx.send(format_bank(result))

    @bot.command(name="withdraw", aliases=["with"])
    async def withdraw_cmd(ctx: commands.Context, amount: str):
        result = service.withdraw(str(ctx.author.id), PLATFORM, amount)
        await ctx.send(format_bank(result))

    @bot.command(name="pay")
    async def pay_cmd(ctx: commands.Context, member: discord.Member, amount: str):
        result = service.transfer(str(ctx.author.id), str(member.id), PLATFORM, amount)
        await ctx.send(
            format_transfer(_display_name(ctx.author), _display_name(member), result)
        )

    @bot.command(name="top", aliases=["leaderboard", "lb"])
    async def top_cmd(ctx: commands.Context, sort_by: str = "total"):
        sort_by = sort_by.lower()
        if sort_by not in LEADERBOARD_SORT_KEYS:
            await ctx.send("Usage: !top [wallet|bank|total]")
            return

        entries = service.leaderboard(PLATFORM, leaderboard_size, sort_by)
        names = {}
        if ctx.guild is not None:
            for entry in entries:
                member = ctx.guild.get_member(int(entry.user_id)) if entry.user_id.isdigit() else None
                if member is not None:
                    names[entry.user_id] = _display_name(member)
        await ctx.send(format_leaderboard(entries, sort_by, names))

    # Administrator commands.

    @bot.command(name="give")
    @commands.has_permissions(administrator=True)
    async def give_cmd(ctx: commands.Context, member: discord.Member, amount: str):
        result = service.add_money(str(member.id), PLATFORM, amount)
        await ctx.send(
            f"Gave {result.amount} to {_display_name(member)}. Wallet: {result.new_balance}"
        )

    @bot.command(name="take")
    @commands.has_permissions(administrator=True)
    async def take_cmd(ctx: commands.Context, member: discord.Member, amount: str):
        result = service.remove_money(str(member.id), PLATFORM, amount)
        await ctx.send(
            f"Took {result.amount} from {_display_name(member)}. Wallet: {result.new_balance}"
        )

    @bot.command(name="upgrade")
    @commands.has_permissions(administrator=True)
    async def upgrade_cmd(ctx: commands.Context, member: discord.Member, amount: str):
        result = service.add_bank_capacity(str(member.id), PLATFORM, amount)
        await ctx.send(
            f"{_display_name(member)}'s bank capacity is now {result.new_capacity}."
        )

    @bot.command(name="reset")
    @commands.has_permissions(administrator=True)
    async def reset_cmd(ctx: commands.Context, member: discord.Member):
        result = service.delete(str(member.id), PLATFORM)
        if result.deleted:
            await ctx.send(f"{_display_name(member)}'s account has been reset.")
        else:
            await ctx.send(f"{_display_name(member)} has no account yet.")

    return bot
