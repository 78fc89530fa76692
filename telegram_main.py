from config import load_settings
from infrastructure.bootstrap import build_service
from infrastructure.observability.logging import setup_logging
from interfaces.telegram.handlers import create_telegram_bot


def main() -> None:
    settings = load_settings()
    if not settings.telegram_token:
        raise RuntimeError("TELEGRAM_TOKEN environment variable is not set.")

    setup_logging(settings.log_level, settings.log_format)
    service = build_service(settings)

    bot = create_telegram_bot(settings.telegram_token, service, daily_reward=settings.daily_reward)
    try:
        bot.infinity_polling()
    finally:
        service.close()


if __name__ == "__main__":
    main()
