"""Weekly inspection report model."""

from datetime import datetime
from enum import StrEnum

from bson import ObjectId
from pydantic import Field

from dgisback.store import Document


class ReportStatus(StrEnum):
    NOT_REVIEWED = "not_reviewed"
    REVIEWED = "reviewed"


class Rating(StrEnum):
    GOOD = "good"
    BAD = "bad"


class ImageKind(StrEnum):
    """The three independent image sections of a report.

    Values are the stored key-list field names.
    """

    APPLICATIONS = "applications_image_keys"
    INSPECTION = "inspection_image_keys"
    ADDITIONAL = "additional_image_keys"


class WeeklyReport(Document):
    """A weekly report written by one user and rated by two reviewers."""

    user_id: ObjectId
    applications: str = ""
    inspection: str = ""
    additional: str = ""
    status: ReportStatus = ReportStatus.NOT_REVIEWED
    supervisor_rate: Rating | None = None
    predsedatel_rate: Rating | None = None
    applications_image_keys: list[str] = Field(default_factory=list)
    inspection_image_keys: list[str] = Field(default_factory=list)
    additional_image_keys: list[str] = Field(default_factory=list)
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def image_keys(self) -> list[str]:
        """Every referenced image key, in section order."""
        return [
            *self.applications_image_keys,
            *self.inspection_image_keys,
            *self.additional_image_keys,
        ]
