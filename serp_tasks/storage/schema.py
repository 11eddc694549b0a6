import re
from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

COMPLETED = "completed"

# "en", "pt", "zh-tw", "es-419"
_LANGUAGE_CODE = re.compile(r"^[a-z]{2,3}(-[a-z0-9]{2,4})?$")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TaskRecord(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    task_id: str
    keyword: str
    language_code: Optional[str] = None
    language_name: Optional[str] = None
    location_code: Optional[int] = None
    location_name: Optional[str] = None
    priority: int = 1
    status: str = "pending"  # pending | created | <provider status> | completed
    result: Optional[Any] = None
    raw_response: Optional[Any] = None
    created_at: datetime = Field(default_factory=utcnow, alias="createdAt")
    updated_at: datetime = Field(default_factory=utcnow, alias="updatedAt")

    @property
    def completed(self) -> bool:
        return self.status == COMPLETED

    def to_document(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)

    @classmethod
    def from_document(cls, doc: dict) -> "TaskRecord":
        """Build a record from a stored document of either shape.

        Older documents carry a single ``language`` / ``location`` string
        instead of the name/code pairs. Those are folded into the matching
        structured field; structured values already present take precedence.
        """
        doc = dict(doc)
        language = doc.pop("language", None)
        location = doc.pop("location", None)

        if language:
            language = str(language).strip()
            if _LANGUAGE_CODE.match(language.lower()):
                if not doc.get("language_code"):
                    doc["language_code"] = language.lower()
            elif not doc.get("language_name"):
                doc["language_name"] = language

        if location not in (None, ""):
            text = str(location).strip()
            if text.isdigit():
                if doc.get("location_code") is None:
                    doc["location_code"] = int(text)
            elif not doc.get("location_name"):
                doc["location_name"] = text

        return cls.model_validate(doc)
