"""Basic usage example for tablecron.

This example shows:
1. Creating a scheduler over a SQLite job table
2. Scheduling one-shot and recurring jobs
3. Handling jobs with sync and async hooks
4. Running two schedulers against the same table
"""

import asyncio
import logging
from datetime import datetime, timedelta

from tablecron import Scheduler, SchedulerConfig, SchedulerHooks, SQLiteJobStore


async def handle_job(job):
    """Process a claimed job."""
    await asyncio.sleep(0.1)
    print(f"  [{datetime.now():%H:%M:%S}] {job.name}: {job.payload}")


def announce_idle():
    print("  No due jobs, waiting...")


async def main():
    """Main example demonstrating tablecron usage."""
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(levelname)s %(message)s")

    print("tablecron Basic Usage Example")
    print("=" * 60)

    config = SchedulerConfig(idle_delay=0.5, lock_duration=30)
    hooks = SchedulerHooks(on_new_job=handle_job, on_idle=announce_idle)

    scheduler = Scheduler(
        store=SQLiteJobStore(database_path=".tablecron-example.db"),
        config=config,
        hooks=hooks,
    )
    await scheduler.store.clear()

    print("\n1. Scheduling jobs...")
    now = datetime.now()
    await scheduler.schedule_once(now, name="welcome-email", payload={"to": "alice@example.com"})
    await scheduler.schedule_once(
        now + timedelta(seconds=2),
        name="one-off-report",
        payload={"report": "daily"},
        auto_remove=True,
    )
    await scheduler.schedule_cron(
        "*/2 * * * * *",
        name="heartbeat",
        repeat_until=now + timedelta(seconds=6),
    )

    for job in await scheduler.list_jobs():
        print(f"   {job.name:15} due {job.sleep_until:%H:%M:%S}")

    # A second scheduler on the same table shares the work
    peer = Scheduler(
        store=SQLiteJobStore(database_path=".tablecron-example.db"),
        config=config,
        hooks=hooks,
    )

    print("\n2. Running two schedulers for 8 seconds...")
    async with scheduler, peer:
        await asyncio.sleep(8)

    print("\n3. Final table:")
    for job in await scheduler.list_jobs():
        print(f"   {job.name:15} sleep_until={job.sleep_until}")

    await scheduler.store.close()
    await peer.store.close()

    print("\n" + "=" * 60)
    print("Done")


if __name__ == "__main__":
    asyncio.run(main())
