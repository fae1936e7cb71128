from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional

from sync.posts.models import Page, ResourceKind

logger = logging.getLogger("classroom_list")

PUBLISHED = ["PUBLISHED"]


def get_all_courses(service, course_states: Optional[list[str]] = None) -> list[dict[str, Any]]:
    courses = []
    page_token = None
    while True:
        response = service.courses().list(
            courseStates=course_states or ["ACTIVE"], pageToken=page_token
        ).execute()
        courses.extend(response.get("courses", []))
        page_token = response.get("nextPageToken")
        if not page_token:
            break
    return courses


class ClassroomListSource:
    """Lists one page of course posts through a googleapiclient Classroom service."""

    def __init__(self, service, page_size: Optional[int] = None):
        self.service = service
        self.page_size = page_size

    def build_request(self, course_id: str, kind: ResourceKind, page_token: Optional[str] = None):
        params: dict[str, Any] = {"courseId": course_id, "pageToken": page_token}
        if self.page_size:
            params["pageSize"] = self.page_size

        courses = self.service.courses()
        if kind is ResourceKind.ANNOUNCEMENTS:
            return courses.announcements().list(**params)
        if kind is ResourceKind.COURSE_WORKS:
            return courses.courseWork().list(courseWorkStates=PUBLISHED, **params)
        if kind is ResourceKind.COURSE_MATERIALS:
            return courses.courseWorkMaterials().list(courseWorkMaterialStates=PUBLISHED, **params)
        raise ValueError(f"Unsupported resource kind: {kind}")

    async def list_page(
        self,
        course_id: str,
        kind: ResourceKind,
        page_token: Optional[str] = None,
    ) -> Page:
        request = self.build_request(course_id, kind, page_token)
        # execute() blocks on HTTP; keep it off the event loop
        response = await asyncio.to_thread(request.execute)
        page = Page.from_response(kind, response or {})
        logger.debug(
            "Listed %d %s for course=%s page_token=%s",
            len(page.records),
            kind.value,
            course_id,
            page_token,
        )
        return page
