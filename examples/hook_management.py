#!/usr/bin/env python3
"""Hook management demo - create, list, update and delete hooks.

Demonstrates:
- create_hook(): register a hook with an event filter and retry policy
- get_hooks() / get_hook(): read hooks back
- update_hook(): change part of a hook
- delete_hook(): remove it again

Hook management needs no realtime connection; only the REST API is used.

Prerequisites:
    - Client key in .env or the environment: ZHOOK_CLIENT_KEY=...
"""

import asyncio
import sys

from zhook import ZhookClient, settings
from zhook.constants import missing_client_key
from zhook.exceptions import ApiError, InvalidConfigurationError


async def main() -> None:
    if not settings.client_key:
        print(missing_client_key())
        sys.exit(1)

    client = ZhookClient(settings.client_key, log_level="warn")

    try:
        hook = await client.create_hook(
            {
                "name": "orders-demo",
                "url": "https://example.com/webhooks/orders",
                "events": ["order.created", "order.paid"],
                "headers": {"X-Demo": "zhook"},
                "retryPolicy": {"maxAttempts": 3, "backoffMultiplier": 2},
            }
        )
        print(f"Created hook {hook.id} ({hook.status})")

        hooks = await client.get_hooks()
        print(f"You have {len(hooks)} hooks:")
        for item in hooks:
            print(f"  - {item.id}: {item.name} -> {item.url}")

        fetched = await client.get_hook(hook.id)
        print(f"Fetched {fetched.name}, events={fetched.events}")

        updated = await client.update_hook(hook.id, {"events": ["order.refunded"]})
        print(f"Updated events: {updated.events}")

        await client.delete_hook(hook.id)
        print(f"Deleted hook {hook.id}")

        # Input is checked before any request is sent
        try:
            await client.create_hook({"name": "bad", "url": "ftp://example.com"})
        except InvalidConfigurationError as exc:
            print(f"Rejected locally: {exc}")
    except ApiError as exc:
        print(f"API error: {exc}")
    finally:
        await client.aclose()


if __name__ == "__main__":
    asyncio.run(main())
