# backend/fivenews/ai_pipeline/scheduler.py
"""
5News Automated Scheduler
Headline ingestion, cartoon warming and cache cleanup on fixed intervals
"""
import asyncio
import signal
from datetime import datetime, timedelta
import logging

from fivenews.ai_pipeline.cache_maintenance import CacheMaintenanceService
from fivenews.ai_pipeline.cartoon_warmer import CartoonWarmer
from fivenews.ai_pipeline.feed_config import FETCH_INTERVAL_MINUTES

logger = logging.getLogger(__name__)


class FiveNewsScheduler:
    def __init__(self, ingestion_service=None, warmer=None, maintenance_service=None):
        """Initialize all services"""
        if ingestion_service is None:
            from fivenews.ai_pipeline.ingestion import HeadlineIngestionService
            ingestion_service = HeadlineIngestionService()
        self.ingestion_service = ingestion_service
        self.warmer = warmer or CartoonWarmer()
        self.maintenance_service = maintenance_service or CacheMaintenanceService()

        self.running = True
        self.tasks = {}  # job name -> most recent task

        # Schedule intervals (in seconds)
        self.INGESTION_INTERVAL = FETCH_INTERVAL_MINUTES * 60
        self.WARMING_INTERVAL = 2 * 3600  # 2 hours

        # Track last run times
        self.last_ingestion = datetime.min
        self.last_warming = datetime.min
        self.last_cleanup = datetime.min

    async def run_ingestion(self):
        """Scheduled ingestion job"""
        try:
            logger.info("=" * 80)
            logger.info("SCHEDULED JOB: Headline Ingestion")
            logger.info("=" * 80)
            stats = await self.ingestion_service.run_ingestion()
            logger.info(f"Ingestion completed: {stats['stored']} headlines stored")
        except Exception as e:
            logger.error(f"Ingestion failed: {str(e)}", exc_info=True)

    async def run_warming(self):
        """Scheduled cartoon warming job"""
        try:
            logger.info("=" * 80)
            logger.info("SCHEDULED JOB: Cartoon Warming")
            logger.info("=" * 80)
            stats = await self.warmer.warm_cartoons()
            logger.info(f"Warming completed: {stats['generated']} generated, {stats['failed']} failed")
        except Exception as e:
            logger.error(f"Cartoon warming failed: {str(e)}", exc_info=True)

    async def run_cleanup(self):
        """Cache cleanup job - daily at 3 AM"""
        try:
            logger.info("=" * 80)
            logger.info("SCHEDULED JOB: Cache Cleanup")
            logger.info("=" * 80)
            await self.maintenance_service.cleanup_all_caches()
        except Exception as e:
            logger.error(f"Cache cleanup failed: {str(e)}", exc_info=True)

    def is_running(self, job: str) -> bool:
        task = self.tasks.get(job)
        return task is not None and not task.done()

    def _schedule(self, job: str, coro_func) -> bool:
        """Start a job unless its previous run is still in progress"""
        if self.is_running(job):
            logger.info(f"Skipping {job}: previous run still in progress")
            return False
        self.tasks[job] = asyncio.create_task(coro_func())
        return True

    async def check_and_run_jobs(self, now=None):
        """Check if it's time to run scheduled jobs"""
        now = now or datetime.now()

        if (now - self.last_ingestion).total_seconds() >= self.INGESTION_INTERVAL:
            if self._schedule("ingestion", self.run_ingestion):
                self.last_ingestion = now

        if (now - self.last_warming).total_seconds() >= self.WARMING_INTERVAL:
            if self._schedule("warming", self.run_warming):
                self.last_warming = now

        # Daily during the 3 AM hour
        if now.hour == 3 and now - self.last_cleanup > timedelta(hours=1):
            if self._schedule("cleanup", self.run_cleanup):
                self.last_cleanup = now

        # Drop completed tasks
        self.tasks = {job: t for job, t in self.tasks.items() if not t.done()}

    async def shutdown(self, sig=None):
        """Graceful shutdown"""
        if sig:
            logger.info(f"Received {sig.name}")
        logger.info("Shutting down scheduler...")
        self.running = False

        # Cancel all pending tasks
        for task in self.tasks.values():
            task.cancel()

        if self.tasks:
            await asyncio.gather(*self.tasks.values(), return_exceptions=True)
        self.tasks = {}

        logger.info("Scheduler stopped")

    async def start(self):
        """Start the scheduler"""
        # Set up signal handlers for graceful shutdown
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGTERM, signal.SIGINT):
            loop.add_signal_handler(sig, lambda s=sig: asyncio.create_task(self.shutdown(s)))

        logger.info("=" * 80)
        logger.info("5News Scheduler Starting")
        logger.info(f"Time: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
        logger.info("=" * 80)

        logger.info("Scheduled Jobs:")
        logger.info(f"  • Ingestion: Every {self.INGESTION_INTERVAL / 60:.0f} minutes")
        logger.info(f"  • Cartoon Warming: Every {self.WARMING_INTERVAL / 3600:.0f} hours")
        logger.info("  • Cache Cleanup: Daily at 3:00 AM")

        # Headlines first so warming has something to work on
        self.last_ingestion = datetime.now()
        await self.run_ingestion()

        logger.info("Scheduler running. Press Ctrl+C to stop.")
        logger.info("=" * 80)

        # Main loop
        try:
            while self.running:
                await self.check_and_run_jobs()
                await asyncio.sleep(60)  # Check every minute
        except asyncio.CancelledError:
            pass
        finally:
            if self.running:
                await self.shutdown()


async def main():
    """Entry point"""
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(levelname)s - %(message)s',
        handlers=[
            logging.FileHandler('fivenews_scheduler.log'),
            logging.StreamHandler()
        ]
    )
    scheduler = FiveNewsScheduler()
    await scheduler.start()


if __name__ == "__main__":
    asyncio.run(main())
