"""
Race, timeout and cancellation with a trace of what ran.

This example shows:
1. Two mirrors raced against each other, the slower one canceled
2. A timeout built by racing a task against a timer
3. Tracing the execution tree through RunConfig
"""

import asyncio
import logging

from lazytask import RunConfig, Trace, race
from lazytask.runtime import after, timeout, to_future

logging.basicConfig(level=logging.DEBUG, format="%(name)s %(message)s")


async def main() -> None:
    trace = Trace()
    config = RunConfig(trace=trace, label="mirrors")

    fastest = race([after(0.05, "mirror-eu"), after(0.01, "mirror-us")])
    print("winner:", await to_future(fastest, config=config))

    try:
        await to_future(timeout(after(1.0, "too slow"), 0.02))
    except TimeoutError as exc:
        print("timeout:", exc)

    for event in trace.get_events():
        print(event.id, event.parent_id, event, event.info)


if __name__ == "__main__":
    asyncio.run(main())
