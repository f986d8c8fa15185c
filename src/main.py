"""Entry point: scan one address from the command line, or serve the API."""

import argparse
import asyncio
import json
import signal
import sys

from loguru import logger

from config.settings import settings
from src.scanner.errors import InputValidationError, PrimaryDataUnavailable
from src.scanner.orchestrator import build_scanner
from src.utils.logger import setup_logger


async def scan_once(address: str) -> int:
    scanner = build_scanner(settings)
    try:
        result = await scanner.scan(address)
    except InputValidationError as e:
        logger.error(f"Invalid address: {e}")
        return 2
    except PrimaryDataUnavailable as e:
        logger.error(f"Scan failed: {e}")
        return 1
    finally:
        await scanner.close()

    print(json.dumps(result, indent=2, default=str))
    return 0


async def serve() -> int:
    from src.api.server import run_api_server

    # Graceful shutdown on SIGINT/SIGTERM
    loop = asyncio.get_running_loop()
    shutdown_event = asyncio.Event()

    def _signal_handler() -> None:
        logger.info("Shutdown signal received")
        shutdown_event.set()

    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, _signal_handler)

    server_task = asyncio.create_task(run_api_server())
    done, pending = await asyncio.wait(
        [server_task, asyncio.create_task(shutdown_event.wait())],
        return_when=asyncio.FIRST_COMPLETED,
    )

    for task in pending:
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
    logger.info("Shutdown complete")
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Token scanner for Solana and BNB Chain contracts")
    parser.add_argument("address", nargs="?", help="contract address to scan")
    parser.add_argument("--serve", action="store_true", help="run the HTTP API instead")
    parser.add_argument("--json-logs", action="store_true", help="emit structured JSON logs")
    args = parser.parse_args(argv)

    if not args.serve and not args.address:
        parser.error("an address is required unless --serve is given")

    setup_logger(json_logs=args.json_logs)
    if args.serve:
        return asyncio.run(serve())
    return asyncio.run(scan_once(args.address))


if __name__ == "__main__":
    sys.exit(main())
