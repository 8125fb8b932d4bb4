import logging
from typing import Optional

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from config import get_settings
from schemas import ALL_COLLECTIONS
from storage import DataStore


logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


class RemoteChangeWatcher:
    """Publishes remote collections that changed outside this process."""

    def __init__(self, store: DataStore, interval_secs: Optional[float] = None) -> None:
        settings = get_settings()
        self.store = store
        self.interval_secs = interval_secs or settings.remote_watch_secs
        self.scheduler = BackgroundScheduler(timezone=settings.timezone)
        # (collection, owner) -> (fingerprint, feed version when it was taken)
        self._fingerprints: dict[tuple[str, str], tuple[str, int]] = {}

    def check(self) -> int:
        remote = self.store.remote
        if remote is None:
            return 0
        feed = self.store.feed
        watched = feed.watched()
        for stale in set(self._fingerprints) - set(watched):
            del self._fingerprints[stale]

        collections = {c.key: c for c in ALL_COLLECTIONS}
        published = 0
        for key, owner_id in watched:
            if self.store.routing.uses_local(owner_id):
                continue
            version = feed.version(key, owner_id)
            try:
                current = remote.fingerprint(collections[key], owner_id)
            except Exception as exc:
                logger.warning(
                    f"remote_watch_failed: collection={key} owner={owner_id} error={exc!r}"
                )
                continue
            previous = self._fingerprints.get((key, owner_id))
            # a publish since the last check already delivered the fresh list
            if (
                previous is not None
                and previous[1] == version
                and previous[0] != current
            ):
                feed.publish(key, owner_id)
                version = feed.version(key, owner_id)
                published += 1
            self._fingerprints[(key, owner_id)] = (current, version)
        return published

    def _run_job(self, source: str = "manual") -> None:
        published = self.check()
        if published:
            logger.info(f"remote_watch: source={source} collections_changed={published}")

    def start(self) -> None:
        self.scheduler.add_job(
            self._run_job,
            IntervalTrigger(seconds=self.interval_secs),
            args=["interval"],
            id="remote_change_watch",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        self.scheduler.start()
        logger.info(f"Remote change watcher started every {self.interval_secs}s")

    def stop(self) -> None:
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
            logger.info("Remote change watcher stopped")
