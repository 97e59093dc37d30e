"""Точка входа в приложение."""
from chromasplit.app import ChromaSplitApp
from chromasplit.config import configure_logging, load_settings


def main() -> None:
    """Читает настройки, создаёт и запускает главное окно приложения."""
    settings = load_settings()
    configure_logging(settings.log_level)
    app = ChromaSplitApp(settings)
    app.mainloop()


if __name__ == "__main__":
    main()
