#!/usr/bin/env python3
"""Listen demo - receive relayed webhooks and persist them to a log file.

Demonstrates:
- on_connected(): see the client identity the service assigns
- on_hook_called(): handle each relayed webhook call
- on_error(): observe connection and reconnection failures
- EventLogger: append every event to zhook-logs-<timestamp>.json

Prerequisites:
    - Client key in .env or the environment: ZHOOK_CLIENT_KEY=...
"""

import asyncio
import json
import sys

from zhook import EventLogger, ZhookClient, settings
from zhook.constants import missing_client_key
from zhook.logging import configure_logging, get_logger

logger = get_logger("zhook.examples.listen")


async def main() -> None:
    if not settings.client_key:
        print(missing_client_key())
        sys.exit(1)

    configure_logging(level="INFO", format=settings.log_format)

    event_logger = EventLogger()
    filename = event_logger.initialize()
    print(f"Logging events to {filename}")

    client = ZhookClient(settings.client_key)

    @client.on_connected
    def connected(event):
        print(f"Connected as {event.client_id}")

    @client.on_hook_called
    def hook_called(event):
        event_logger.log_event(event)
        print(f"[{event.received_at}] hook={event.hook_id} event={event.event_id}")
        print(json.dumps(event.payload, indent=2))

    @client.on_error
    def error(exc):
        logger.error("zhook error", code=exc.code, error=str(exc))

    try:
        await client.connect()
        print("Waiting for webhook calls. Press Ctrl+C to stop.")
        await asyncio.Event().wait()
    finally:
        await client.aclose()
        event_logger.close()
        print(f"Logged {event_logger.event_count} events")


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        pass
