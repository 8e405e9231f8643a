"""Weekly report workflow: CRUD, review status, ratings and images."""

from __future__ import annotations

import logging
import time
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from dgisback.errors import InvalidArgumentError, NotFoundError, ObjectStoreError
from dgisback.models import ImageKind, Rating, ReportStatus, WeeklyReport
from dgisback.store import NEWEST_FIRST, Repository, UpdateBuilder, parse_object_id

if TYPE_CHECKING:
    from collections.abc import Sequence

    from bson import ObjectId
    from motor.motor_asyncio import AsyncIOMotorDatabase

    from dgisback.storage import ObjectStore

LOGGER = logging.getLogger(__name__)

REPORTS_COLLECTION = "weekly_reports"


class ReportWorkflow:
    """Repository and workflow operations for weekly reports."""

    def __init__(
        self,
        database: AsyncIOMotorDatabase,
        object_store: ObjectStore,
    ) -> None:
        """Create the workflow.

        :param database: Motor database holding the reports collection
        :param object_store: Blob store holding report images
        """
        self.reports = Repository(
            database[REPORTS_COLLECTION],
            WeeklyReport,
            "weekly report",
        )
        self.object_store = object_store

    async def create(self, report: WeeklyReport) -> WeeklyReport:
        """Persist a new report, stamping both timestamps.

        The status defaults to ``not_reviewed`` through the model.
        """
        now = datetime.now(UTC)
        report.created_at = now
        report.updated_at = now

        created = await self.reports.insert_one(report)
        LOGGER.info("Created report with ID %s", created.id)
        return created

    async def get_by_id(self, report_id: ObjectId | str) -> WeeklyReport:
        """Return a report.

        :raises NotFoundError: If the report does not exist
        """
        return await self.reports.get_by_id(parse_object_id(report_id))

    async def list_reports(
        self,
        query: dict[str, Any] | None = None,
        limit: int = 0,
        offset: int = 0,
    ) -> list[WeeklyReport]:
        """List reports matching a filter, newest first.

        :param limit: Page size, unbounded when <= 0
        :param offset: Reports to skip, none when <= 0
        """
        return await self.reports.find_many(
            query,
            sort=NEWEST_FIRST,
            skip=offset,
            limit=limit,
        )

    async def list_by_user(
        self,
        user_id: ObjectId | str,
        limit: int = 0,
        offset: int = 0,
    ) -> list[WeeklyReport]:
        return await self.list_reports(
            {"user_id": parse_object_id(user_id)},
            limit,
            offset,
        )

    async def _update(self, report_id: ObjectId | str, builder: UpdateBuilder) -> None:
        report_oid = parse_object_id(report_id)
        update = builder.set("updated_at", datetime.now(UTC)).build()
        if not await self.reports.update_by_id(report_oid, update):
            raise NotFoundError("weekly report", report_oid)

    async def update_fields(
        self,
        report_id: ObjectId | str,
        fields: dict[str, Any],
    ) -> WeeklyReport:
        """Merge a partial set of stored fields into a report.

        Enum fields are validated so ratings and status stay well formed.

        :return: The updated report
        """
        checked = dict(fields)
        if "status" in checked:
            checked["status"] = _status(checked["status"])
        for field in ("supervisor_rate", "predsedatel_rate"):
            if checked.get(field) is not None:
                checked[field] = _rating(checked[field])

        await self._update(report_id, UpdateBuilder().set_many(checked))
        return await self.get_by_id(report_id)

    async def set_status(
        self,
        report_id: ObjectId | str,
        status: ReportStatus | str,
    ) -> None:
        await self._update(report_id, UpdateBuilder().set("status", _status(status)))

    async def set_supervisor_rate(
        self,
        report_id: ObjectId | str,
        rating: Rating | str,
    ) -> None:
        """Store the supervisor's rating.

        :raises InvalidArgumentError: Unless the rating is ``good`` or ``bad``
        """
        rating = _rating(rating)
        await self._update(report_id, UpdateBuilder().set("supervisor_rate", rating))

    async def set_predsedatel_rate(
        self,
        report_id: ObjectId | str,
        rating: Rating | str,
    ) -> None:
        """Store the chairman's rating.

        :raises InvalidArgumentError: Unless the rating is ``good`` or ``bad``
        """
        rating = _rating(rating)
        await self._update(report_id, UpdateBuilder().set("predsedatel_rate", rating))

    async def append_image_keys(
        self,
        report_id: ObjectId | str,
        applications_keys: Sequence[str] = (),
        inspection_keys: Sequence[str] = (),
        additional_keys: Sequence[str] = (),
    ) -> None:
        """Append image keys to the three key lists, keeping existing keys."""
        builder = UpdateBuilder()
        for kind, keys in (
            (ImageKind.APPLICATIONS, applications_keys),
            (ImageKind.INSPECTION, inspection_keys),
            (ImageKind.ADDITIONAL, additional_keys),
        ):
            if keys:
                builder.push_each(kind.value, list(keys))

        if builder.is_empty():
            return

        await self._update(report_id, builder)

    async def delete(
        self,
        report_id: ObjectId | str,
        bucket: str | None = None,
    ) -> None:
        """Delete a report after a best-effort cleanup of its images.

        Image deletion failures are logged and do not stop the record
        deletion, so blobs may be orphaned.

        :param bucket: Bucket holding the images, the default one if None
        :raises NotFoundError: If the report does not exist
        """
        report = await self.get_by_id(report_id)

        for key in report.image_keys():
            try:
                await self.object_store.delete(key, bucket)
            except ObjectStoreError:
                LOGGER.warning(
                    "Failed to delete image %s of report %s",
                    key,
                    report.id,
                    exc_info=True,
                )

        if not await self.reports.delete_by_id(report.document_id()):
            raise NotFoundError("weekly report", report.id)
        LOGGER.info("Deleted report with ID %s", report.id)

    async def upload_image(
        self,
        content: bytes,
        filename: str,
        content_type: str,
        bucket: str | None = None,
    ) -> str:
        """Upload image bytes once and return the storage key.

        :return: Key of the form ``<unix seconds>_<filename>``
        """
        key = f"{int(time.time())}_{filename}"
        await self.object_store.upload(key, content, content_type, bucket)
        LOGGER.info("Uploaded image %s", key)
        return key

    async def get_image(self, key: str, bucket: str | None = None) -> bytes:
        return await self.object_store.download(key, bucket)


def _rating(value: Rating | str) -> Rating:
    try:
        return Rating(value)
    except ValueError as e:
        msg = f"invalid rating value {value!r}, must be 'good' or 'bad'"
        raise InvalidArgumentError(msg) from e


def _status(value: ReportStatus | str) -> ReportStatus:
    try:
        return ReportStatus(value)
    except ValueError as e:
        msg = f"invalid report status: {value!r}"
        raise InvalidArgumentError(msg) from e
