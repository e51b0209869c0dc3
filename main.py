#!/usr/bin/env python3
"""
Flipbook - Main Entry Point
Runs a Telegram demo bot that answers commands with paginated messages.

Usage:
    python main.py                   # Token from TELEGRAM_BOT_TOKEN
    python main.py --token 123:abc   # Explicit token
    python main.py --log-level DEBUG

Demo commands (send them to the bot):
    /pages     Plain-text pages with {0}/{1} page placeholders
    /embed     Document pages without a footer (default "Page x/y")
    /template  Document pages with a shared template whose footer has an
               icon but no text
"""

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Dict, List, Optional

# Ensure we can import from project root
sys.path.insert(0, str(Path(__file__).parent))

import config
from core.logger import (
    setup_logging,
    log_startup_banner,
    log_config,
    log_header,
    log_info,
    log_success,
    log_warning,
    log_error,
)
from communication.telegram_listener import InboundMessage, TelegramListener
from communication.telegram_transport import TelegramTransport
from pagination import Document, Paginator

DUMMY_TEXT = (
    "Lorem Ipsum is simply dummy text of the printing and typesetting industry. "
    "Lorem Ipsum has been the industry's standard dummy text ever since the 1500s..."
)

# Extra controls enabled in the demo
DEMO_SYMBOLS = {"jump": "🔢", "info": "ℹ️", "trash": "🗑"}


def build_text_pages() -> List[str]:
    names = ["Page one", "Page two", "Page three", "Page four", "Page five"]
    return [f"{name}\n{DUMMY_TEXT}\n\nPage {{0}}/{{1}}" for name in names]


def build_document_pages(count: int = 5) -> List[Document]:
    return [Document(description=f"Page {i}\n{DUMMY_TEXT}") for i in range(1, count + 1)]


def build_template(icon_url: Optional[str] = None) -> Dict[str, object]:
    return {
        "title": "Constant Title",
        "color": 0x0000FF,
        "footer": {"icon_url": icon_url or "https://telegram.org/img/t_logo.png"},
    }


class DemoBot:
    """Starts one paginator per demo command."""

    def __init__(self, listener: TelegramListener, timeout: float):
        self.listener = listener
        self.transport = TelegramTransport(listener)
        self.timeout = timeout
        self.active: List[Paginator] = []

    async def handle(self, message: InboundMessage) -> Optional[Paginator]:
        words = message.text.strip().split()
        if not words:
            return None
        command = words[0].split("@")[0].lower()

        if command == "/pages":
            paginator = Paginator(pages=build_text_pages())
        elif command == "/embed":
            paginator = Paginator(pages=build_document_pages())
        elif command == "/template":
            paginator = Paginator(pages=build_document_pages(4), template=build_template())
        else:
            return None

        paginator.set_symbols(DEMO_SYMBOLS).set_stoppable(True).set_timeout(self.timeout)
        paginator.listen(message.user_id)
        paginator.on("end", lambda reason: self._ended(paginator, command, reason))
        paginator.on("error", lambda error: log_error(f"{command} paginator error: {error}"))

        self.active.append(paginator)
        try:
            await paginator.start(self.transport, message.chat_id)
        finally:
            if not paginator.running and paginator in self.active:
                self.active.remove(paginator)
        return paginator

    def _ended(self, paginator: Paginator, command: str, reason: str) -> None:
        log_info(f"{command} paginator ended: {reason}")
        if paginator in self.active:
            self.active.remove(paginator)

    def close(self) -> None:
        """Destroy every paginator that is still listening."""
        for paginator in list(self.active):
            paginator.destroy()


def print_configuration(timeout: float) -> None:
    """Print the active configuration."""
    log_header("Configuration")
    log_config("Paginator timeout", f"{timeout:g}s")
    log_config("Circular", str(config.PAGINATOR_CIRCULAR))
    log_config("Control pacing", f"{config.CONTROL_PACING_DELAY:g}s")
    log_config("Jump timeout", f"{config.JUMP_TIMEOUT:g}s")
    log_config("Poll interval", f"{config.TELEGRAM_POLL_INTERVAL:g}s")


async def run_bot(token: str, timeout: float) -> None:
    """Poll Telegram and serve demo commands until cancelled."""
    listener = TelegramListener(bot_token=token, poll_interval=config.TELEGRAM_POLL_INTERVAL)
    bot = DemoBot(listener, timeout)
    listener.set_callback(bot.handle)

    task = listener.start()
    log_success("Demo bot ready - send /pages, /embed or /template")
    try:
        await task
    finally:
        bot.close()
        await listener.stop()


def main() -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Flipbook - Telegram message paginator demo",
        formatter_class=argparse.RawDescriptionHelpFormatter
    )
    parser.add_argument(
        "--token", "-t",
        default=config.TELEGRAM_BOT_TOKEN,
        help="Telegram bot token (defaults to TELEGRAM_BOT_TOKEN)"
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=config.PAGINATOR_TIMEOUT,
        help="Seconds each paginator keeps listening"
    )
    parser.add_argument(
        "--log-level",
        default=config.LOG_LEVEL,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level for the diagnostic log"
    )
    args = parser.parse_args()

    setup_logging(
        log_file_path=config.DIAGNOSTIC_LOG_PATH,
        level=args.log_level,
        log_to_file=config.LOG_TO_FILE,
        log_to_console=config.LOG_TO_CONSOLE
    )
    log_startup_banner(config.VERSION, config.PROJECT_NAME)

    if not args.token:
        log_error("No Telegram bot token configured (set TELEGRAM_BOT_TOKEN or pass --token)")
        return 1

    print_configuration(args.timeout)

    try:
        asyncio.run(run_bot(args.token, args.timeout))
        return 0
    except KeyboardInterrupt:
        log_warning("Interrupted")
        return 130
    except Exception as e:
        log_error(f"Fatal error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
