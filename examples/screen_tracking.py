"""Track screen views and events through the analytics facade.

Usage:
    FIRELYTICS_MEASUREMENT_ID=G-XXXXXXXXXX python examples/screen_tracking.py
"""

import asyncio
import logging
import os
import uuid

from firelytics import facade


async def main() -> None:
    await facade.initialize(
        {
            "config": {"measurementId": os.environ["FIRELYTICS_MEASUREMENT_ID"]},
            "options": {
                "clientId": str(uuid.uuid4()),
                "sessionId": uuid.uuid4().hex[:10],
                "appName": "screen-tracking-example",
                "debug": True,
            },
        }
    )

    await facade.set_user_id("example-user")
    await facade.set_user_properties({"plan": "free"})

    await facade.send_screen_event("home")
    await facade.send_event("button_click", {"button": "start", "tags": ["a", "b"]})
    # Same screen again: no second screen_view
    await facade.send_screen_event("home")
    await facade.send_screen_event("settings", {"from": "home"})

    await facade.get_analytics().aclose()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    asyncio.run(main())
