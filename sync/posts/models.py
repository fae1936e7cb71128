"""
Data models for course posts: the three record kinds, the Post wrapper
shown in feeds and the Page returned by one list call.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional, Union

OLDEST = datetime.min.replace(tzinfo=timezone.utc)
_FRACTION = re.compile(r"\.(\d+)")


def parse_google_dt(value: str | None) -> datetime | None:
    if not isinstance(value, str):
        return None
    text = value.strip()
    if not text:
        return None
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    # 3.10 fromisoformat takes only 3 or 6 fractional digits; Google may send 9
    text = _FRACTION.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), text, count=1)
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def format_google_dt(value: datetime | None) -> str | None:
    if value is None:
        return None
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def _put(data: dict[str, Any], key: str, value: Any) -> None:
    if value is not None and value != []:
        data[key] = value


@dataclass
class Announcement:
    id: str
    course_id: str = ""
    text: str = ""
    state: Optional[str] = None
    alternate_link: Optional[str] = None
    creation_time: Optional[datetime] = None
    update_time: Optional[datetime] = None
    creator_user_id: Optional[str] = None
    materials: list[dict] = field(default_factory=list)

    @property
    def creation_date(self) -> datetime:
        return self.creation_time or OLDEST

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "Announcement":
        return cls(
            id=str(data["id"]),
            course_id=str(data.get("courseId") or ""),
            text=data.get("text") or "",
            state=data.get("state"),
            alternate_link=data.get("alternateLink"),
            creation_time=parse_google_dt(data.get("creationTime")),
            update_time=parse_google_dt(data.get("updateTime")),
            creator_user_id=data.get("creatorUserId"),
            materials=list(data.get("materials") or []),
        )

    def to_api(self) -> dict[str, Any]:
        data: dict[str, Any] = {"id": self.id, "courseId": self.course_id, "text": self.text}
        _put(data, "state", self.state)
        _put(data, "alternateLink", self.alternate_link)
        _put(data, "creationTime", format_google_dt(self.creation_time))
        _put(data, "updateTime", format_google_dt(self.update_time))
        _put(data, "creatorUserId", self.creator_user_id)
        _put(data, "materials", self.materials)
        return data


@dataclass
class CourseWork:
    id: str
    course_id: str = ""
    title: str = ""
    description: str = ""
    state: Optional[str] = None
    alternate_link: Optional[str] = None
    creation_time: Optional[datetime] = None
    update_time: Optional[datetime] = None
    creator_user_id: Optional[str] = None
    work_type: Optional[str] = None
    max_points: Optional[float] = None
    due_date: Optional[dict] = None
    due_time: Optional[dict] = None
    materials: list[dict] = field(default_factory=list)

    @property
    def creation_date(self) -> datetime:
        return self.creation_time or OLDEST

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "CourseWork":
        return cls(
            id=str(data["id"]),
            course_id=str(data.get("courseId") or ""),
            title=data.get("title") or "",
            description=data.get("description") or "",
            state=data.get("state"),
            alternate_link=data.get("alternateLink"),
            creation_time=parse_google_dt(data.get("creationTime")),
            update_time=parse_google_dt(data.get("updateTime")),
            creator_user_id=data.get("creatorUserId"),
            work_type=data.get("workType"),
            max_points=data.get("maxPoints"),
            due_date=data.get("dueDate"),
            due_time=data.get("dueTime"),
            materials=list(data.get("materials") or []),
        )

    def to_api(self) -> dict[str, Any]:
        data: dict[str, Any] = {"id": self.id, "courseId": self.course_id, "title": self.title}
        _put(data, "description", self.description or None)
        _put(data, "state", self.state)
        _put(data, "alternateLink", self.alternate_link)
        _put(data, "creationTime", format_google_dt(self.creation_time))
        _put(data, "updateTime", format_google_dt(self.update_time))
        _put(data, "creatorUserId", self.creator_user_id)
        _put(data, "workType", self.work_type)
        _put(data, "maxPoints", self.max_points)
        _put(data, "dueDate", self.due_date)
        _put(data, "dueTime", self.due_time)
        _put(data, "materials", self.materials)
        return data


@dataclass
class CourseMaterial:
    id: str
    course_id: str = ""
    title: str = ""
    description: str = ""
    state: Optional[str] = None
    alternate_link: Optional[str] = None
    creation_time: Optional[datetime] = None
    update_time: Optional[datetime] = None
    creator_user_id: Optional[str] = None
    materials: list[dict] = field(default_factory=list)

    @property
    def creation_date(self) -> datetime:
        return self.creation_time or OLDEST

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "CourseMaterial":
        return cls(
            id=str(data["id"]),
            course_id=str(data.get("courseId") or ""),
            title=data.get("title") or "",
            description=data.get("description") or "",
            state=data.get("state"),
            alternate_link=data.get("alternateLink"),
            creation_time=parse_google_dt(data.get("creationTime")),
            update_time=parse_google_dt(data.get("updateTime")),
            creator_user_id=data.get("creatorUserId"),
            materials=list(data.get("materials") or []),
        )

    def to_api(self) -> dict[str, Any]:
        data: dict[str, Any] = {"id": self.id, "courseId": self.course_id, "title": self.title}
        _put(data, "description", self.description or None)
        _put(data, "state", self.state)
        _put(data, "alternateLink", self.alternate_link)
        _put(data, "creationTime", format_google_dt(self.creation_time))
        _put(data, "updateTime", format_google_dt(self.update_time))
        _put(data, "creatorUserId", self.creator_user_id)
        _put(data, "materials", self.materials)
        return data


Record = Union[Announcement, CourseWork, CourseMaterial]


class ResourceKind(Enum):
    ANNOUNCEMENTS = "courseAnnouncements"
    COURSE_WORKS = "courseWorks"
    COURSE_MATERIALS = "courseMaterials"

    @property
    def record_type(self) -> type:
        return _RECORD_TYPES[self]

    @property
    def response_field(self) -> str:
        """Key holding the record list in a list response."""
        return _RESPONSE_FIELDS[self]

    def decode(self, data: dict[str, Any]) -> Record:
        return self.record_type.from_api(data)


_RECORD_TYPES = {
    ResourceKind.ANNOUNCEMENTS: Announcement,
    ResourceKind.COURSE_WORKS: CourseWork,
    ResourceKind.COURSE_MATERIALS: CourseMaterial,
}

_RESPONSE_FIELDS = {
    ResourceKind.ANNOUNCEMENTS: "announcements",
    ResourceKind.COURSE_WORKS: "courseWork",
    ResourceKind.COURSE_MATERIALS: "courseWorkMaterial",
}


@dataclass(frozen=True)
class Post:
    """Feed entry wrapping one record of any kind."""
    kind: ResourceKind
    record: Record

    @property
    def id(self) -> str:
        return self.record.id

    @property
    def creation_date(self) -> datetime:
        return self.record.creation_date

    @property
    def title(self) -> str:
        if isinstance(self.record, Announcement):
            return self.record.text.strip().splitlines()[0] if self.record.text.strip() else ""
        return self.record.title


@dataclass
class Page:
    records: list = field(default_factory=list)
    next_page_token: Optional[str] = None

    @classmethod
    def from_response(cls, kind: ResourceKind, response: dict[str, Any]) -> "Page":
        records = [kind.decode(item) for item in response.get(kind.response_field, [])]
        token = response.get("nextPageToken") or None
        return cls(records=records, next_page_token=token)
