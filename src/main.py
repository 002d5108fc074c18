import asyncio
import logging
import sys
from typing import Optional

from app_config import AppConfigurationError, load_app_config, resolve_config_path
from runtime import RuntimeBootstrap, RuntimeEngine
from server import ServerConfigurationError, UIServer, UIServerConfig


def setup_logging(level: int = logging.INFO) -> logging.Logger:
    """Configure logging for the application."""
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    return logging.getLogger("worktimer_app")


def start_ui_server(app_config, logger: logging.Logger) -> Optional[UIServer]:
    """Start the websocket UI server if configured; failures are not fatal."""
    try:
        ui_server_config = UIServerConfig.from_settings(app_config.ui_server)
    except ServerConfigurationError as error:
        logger.error(f"UI server configuration error: {error}")
        logger.warning("Continuing without UI server.")
        return None

    if not ui_server_config.enabled:
        return None

    ui_server = UIServer(
        config=ui_server_config,
        logger=logging.getLogger("ui_server"),
    )
    try:
        logger.info("Starting UI server...")
        ui_server.start(timeout_seconds=5.0)
    except Exception as error:
        logger.error(f"UI server startup failed: {error}")
        logger.warning("Continuing without UI server.")
        ui_server.stop()
        return None

    logger.info(
        "UI server ready at http://%s:%d",
        ui_server.host,
        ui_server.port,
    )
    return ui_server


def main(argv: Optional[list[str]] = None) -> int:
    """Run a work session until it ends or a signal arrives."""
    args = sys.argv[1:] if argv is None else argv
    logger = setup_logging(level=logging.INFO)

    try:
        config_path = resolve_config_path(args[0] if args else None)
        app_config = load_app_config(str(config_path))
        logger.info("Loaded runtime config: %s", config_path)
    except AppConfigurationError as error:
        logger.error(f"App configuration error: {error}")
        return 1

    logging.getLogger().setLevel(app_config.logging.level)

    ui_server = start_ui_server(app_config, logger)
    engine = RuntimeEngine(
        RuntimeBootstrap(
            logger=logger,
            app_config=app_config,
            ui_server=ui_server,
        )
    )

    try:
        return asyncio.run(engine.run())
    except KeyboardInterrupt:
        logger.info("Interrupted, stopping...")
        return 0
    finally:
        if ui_server is not None:
            logger.info("Stopping UI server...")
            ui_server.stop()


if __name__ == "__main__":
    raise SystemExit(main())
