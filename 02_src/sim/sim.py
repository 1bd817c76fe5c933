"""SIM implementation - package publishing scenario against the backends."""

import asyncio
import random
from typing import Protocol

from callpath.app import Application
from callpath.logging_config import get_logger
from callpath.models import Entity, Key, Query

logger = get_logger(__name__)

ARCHIVE_BUCKET = "package-archives"
PACKAGE_KIND = "Package"
VERSION_KIND = "PackageVersion"


class ISim(Protocol):
    """Generate backend traffic so the call trees have something to show."""

    async def start(self) -> None:
        """Start scenario."""
        ...

    async def stop(self) -> None:
        """Stop scenario."""
        ...


class Sim:
    """Publishes, lists and downloads package versions in a loop."""

    def __init__(
        self,
        application: Application,
        packages: list[str] | None = None,
        rounds: int = 3,
        delay: tuple[float, float] = (0.1, 0.5),
    ):
        self._application = application
        self._packages = packages or ["http", "path", "args", "yaml"]
        self._rounds = rounds
        self._delay = delay
        self._running = False
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._running

    async def start(self) -> None:
        """Start scenario in the background."""
        if self._running:
            return

        self._running = True
        self._task = asyncio.create_task(self._run_scenario())

    async def stop(self) -> None:
        """Stop scenario."""
        self._running = False

        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

    async def run_once(self) -> None:
        """Run all rounds without pauses."""
        await self._ensure_bucket()
        for round_no in range(self._rounds):
            await self._run_round(round_no, pause=False)

    async def _run_scenario(self) -> None:
        """Run scenario until stopped."""
        try:
            await self._ensure_bucket()
            for round_no in range(self._rounds):
                if not self._running:
                    break
                await self._run_round(round_no, pause=True)
        except asyncio.CancelledError:
            pass
        except Exception as e:
            logger.error("SIM scenario error: %s", e)
        finally:
            self._running = False

    async def _run_round(self, round_no: int, pause: bool) -> None:
        version = f"1.{round_no}.0"
        for package in self._packages:
            await self._publish(package, version)
            await self._list_versions(package)
            await self._download(package, version)
            if pause:
                await asyncio.sleep(random.uniform(*self._delay))

    async def _ensure_bucket(self) -> None:
        storage = self._application.storage
        if not await storage.bucket_exists(ARCHIVE_BUCKET):
            await storage.create_bucket(ARCHIVE_BUCKET)

    async def _publish(self, package: str, version: str) -> None:
        datastore = self._application.datastore
        bucket = self._application.storage.bucket(ARCHIVE_BUCKET)

        archive = f"{package}-{version}".encode() * 16
        await bucket.write_bytes(
            f"{package}/{version}.tar.gz", archive, content_type="application/gzip"
        )

        transaction = await datastore.begin_transaction()
        (existing,) = await datastore.lookup([Key(PACKAGE_KIND, package)], transaction=transaction)
        properties = existing.properties if existing else {"name": package, "versions": 0}
        properties = {**properties, "latest": version, "versions": properties["versions"] + 1}
        await datastore.commit(
            inserts=[Entity(Key(PACKAGE_KIND, package), properties)],
            auto_id_inserts=[
                Entity(Key(VERSION_KIND), {"package": package, "version": version})
            ],
            transaction=transaction,
        )
        logger.info("SIM: published %s %s", package, version)

    async def _list_versions(self, package: str) -> list[str]:
        query = Query(kind=VERSION_KIND, filters={"package": package})
        return [
            entity.properties["version"]
            async for entity in self._application.datastore.query(query)
        ]

    async def _download(self, package: str, version: str) -> int:
        bucket = self._application.storage.bucket(ARCHIVE_BUCKET)
        size = 0
        async for chunk in bucket.read(f"{package}/{version}.tar.gz"):
            size += len(chunk)
        return size
