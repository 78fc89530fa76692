from config import load_settings
from infrastructure.bootstrap import build_service
from infrastructure.observability.logging import setup_logging
from interfaces.discord.handlers import create_discord_bot


def main() -> None:
    settings = load_settings()
    if not settings.discord_token:
        raise RuntimeError("DISCORD_TOKEN environment variable is not set.")

    setup_logging(settings.log_level, settings.log_format)
    service = build_service(settings)

    bot = create_discord_bot(service, daily_reward=settings.daily_reward)
    try:
        # Logging is already configured; keep discord.py from installing its own handler.
        bot.run(settings.discord_token, log_handler=None)
    finally:
        # Apply writes still sitting in the queue before the process exits.
        service.close()


if __name__ == "__main__":
    main()
