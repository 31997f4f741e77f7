"""Application entry point for the Galaltix backend server."""

from galaltix.app import App
from galaltix.config import Config
from galaltix.logging import setup_logging
from galaltix.web.runner import run_server


def main() -> None:
    config = Config()
    setup_logging(config.debug)
    app = App(config)
    run_server(app, config)


if __name__ == "__main__":
    main()
