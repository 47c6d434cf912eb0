from __future__ import annotations

import argparse
import asyncio
import logging
import signal
import sys
import traceback
import warnings
from logging.handlers import TimedRotatingFileHandler

import truststore


if __name__ == "__main__":

    truststore.inject_into_ssl()

    from localevents.config import (
        DEFAULT_HOST,
        DEFAULT_PORT,
        FILE_FORMATTER,
        LOG_PATH,
        LOGGING_LEVELS,
    )
    from localevents.config.settings import Settings
    from localevents.core.client import LocalEvents
    from localevents.utils import format_traceback
    from localevents.version import __version__

    logger = logging.getLogger("LocalEvents")
    logger.setLevel(logging.INFO)
    # Always add console handler
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(FILE_FORMATTER)
    logger.addHandler(console_handler)

    warnings.simplefilter("default", ResourceWarning)

    if sys.version_info < (3, 10):
        raise RuntimeError("Python 3.10 or higher is required")

    class ParsedArgs(argparse.Namespace):
        _verbose: int
        host: str
        port: int

        @property
        def logging_level(self) -> int:
            return LOGGING_LEVELS[min(self._verbose, 4)]

    # handle input parameters
    parser = argparse.ArgumentParser(
        description="Browse local events, with their images loaded through a shared cache.",
    )
    parser.add_argument("--version", action="version", version=f"v{__version__}")
    parser.add_argument("-v", dest="_verbose", action="count", default=2)
    parser.add_argument("--host", default=DEFAULT_HOST)
    parser.add_argument("--port", type=int, default=DEFAULT_PORT)
    args = parser.parse_args(namespace=ParsedArgs())
    logger.setLevel(args.logging_level)
    # load settings
    logger.debug("Loading settings")
    try:
        settings = Settings(args)
        settings.clamp()
    except Exception:
        logger.exception("Error while loading settings")
        print(f"Settings error: {traceback.format_exc()}", file=sys.stderr)
        sys.exit(4)

    async def main():
        LOG_PATH.parent.mkdir(exist_ok=True)
        file_handler = TimedRotatingFileHandler(LOG_PATH, when="midnight", backupCount=5)
        file_handler.setFormatter(FILE_FORMATTER)
        logger.addHandler(file_handler)
        logger.info(f"Logging to file: {LOG_PATH}")

        logger.info("=== LocalEvents Starting ===")
        logger.info(f"Version: {__version__}")
        logger.info(f"Python version: {sys.version}")
        logger.info(f"Platform: {sys.platform}")

        exit_status = 0
        client = LocalEvents(settings)

        from localevents.web import app as webapp
        from localevents.web.gui_manager import WebGUIManager

        client.gui = WebGUIManager(client)
        webapp.set_managers(client.gui, client)
        logger.info(f"Starting web server on http://{settings.host}:{settings.port}")
        web_server_task = asyncio.create_task(
            webapp.run_server(host=settings.host, port=settings.port)
        )

        loop = asyncio.get_running_loop()
        if sys.platform == "linux":
            loop.add_signal_handler(signal.SIGINT, lambda *_: client.close())
            loop.add_signal_handler(signal.SIGTERM, lambda *_: client.close())

        try:
            await client.run()
            logger.info("Client run completed normally")
        except Exception as exc:
            logger.exception("Fatal error encountered during client run")
            exit_status = 1
            client.print("Fatal error encountered:\n")
            client.print(format_traceback(exc))
        finally:
            logger.info("=== Starting shutdown sequence ===")
            if sys.platform == "linux":
                loop.remove_signal_handler(signal.SIGINT)
                loop.remove_signal_handler(signal.SIGTERM)
            client.gui.status.update("Exiting...")
            if not web_server_task.done():
                logger.info("Shutting down web server")
                await webapp.shutdown_server()
                try:
                    await asyncio.wait_for(web_server_task, timeout=5.0)
                except asyncio.TimeoutError:
                    logger.warning("Web server didn't exit in time, forcing cancellation")
                    web_server_task.cancel()
                    try:
                        await web_server_task
                    except asyncio.CancelledError:
                        logger.info("Web server task force-cancelled")
                except Exception as e:
                    logger.error(f"Error while shutting down web server: {e}")
            await client.shutdown()
        # save the application state
        client.save(force=True)
        logger.info(f"=== Exiting with status code: {exit_status} ===")
        sys.exit(exit_status)

    asyncio.run(main())
