"""Heartbeat monitor — a peer that pings every ~50 ms and then goes silent.

The monitor task owns the ping window, so heartbeats and suspicion checks
never touch it concurrently.
"""

import asyncio
import logging
import random
import time

from accrual import PingWindow

HEARTBEATS = 40
THRESHOLD = 8.0


async def peer(inbox: asyncio.Queue[float]) -> None:
    for _ in range(HEARTBEATS):
        await asyncio.sleep(random.uniform(0.04, 0.06))
        inbox.put_nowait(time.monotonic())
    print("peer: going silent")


async def monitor(inbox: asyncio.Queue[float]) -> None:
    window = PingWindow()
    while True:
        try:
            arrival = await asyncio.wait_for(inbox.get(), timeout=0.1)
            window.record_heartbeat(arrival)
            continue
        except TimeoutError:
            pass

        dist = window.snapshot_distribution()
        phi = window.phi()
        print(
            f"monitor: phi={phi:6.2f} mean={dist.mean()}ms "
            f"std={dist.std_dev()}ms deadline={dist.deadline_for_phi(THRESHOLD):.0f}ms"
        )
        if not window.is_available(THRESHOLD):
            print("monitor: peer suspected")
            return


async def main() -> None:
    logging.basicConfig(level=logging.DEBUG)
    inbox: asyncio.Queue[float] = asyncio.Queue()
    await asyncio.gather(peer(inbox), monitor(inbox))


asyncio.run(main())
