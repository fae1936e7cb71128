from __future__ import annotations

import logging
from pathlib import Path

from sync.posts.settings import resolve_credentials_path, resolve_token_path

logger = logging.getLogger("classroom_client")

SCOPES = [
    "https://www.googleapis.com/auth/classroom.courses.readonly",
    "https://www.googleapis.com/auth/classroom.announcements.readonly",
    "https://www.googleapis.com/auth/classroom.coursework.me.readonly",
    "https://www.googleapis.com/auth/classroom.courseworkmaterials.readonly",
]


def get_classroom_service(
    credentials_file: str | Path | None = None,
    token_file: str | Path | None = None,
):
    credentials_path = resolve_credentials_path(credentials_file)
    token_path = resolve_token_path(token_file)

    try:
        from google.auth.transport.requests import Request
        from google.oauth2.credentials import Credentials
        from google_auth_oauthlib.flow import InstalledAppFlow
        from googleapiclient.discovery import build
    except ModuleNotFoundError as exc:
        raise RuntimeError(
            "Google Classroom dependencies are missing. "
            "Install requirements before running sync."
        ) from exc

    creds = None
    if token_path.exists():
        creds = Credentials.from_authorized_user_file(str(token_path), SCOPES)

    if not creds or not creds.valid:
        if creds and creds.expired and creds.refresh_token:
            logger.debug("Refreshing expired token %s", token_path)
            creds.refresh(Request())
        else:
            if not credentials_path.exists():
                raise FileNotFoundError(
                    "Google Classroom credentials file not found: "
                    f"{credentials_path}. Set GLASSROOM_CREDENTIALS_FILE in .env."
                )
            flow = InstalledAppFlow.from_client_secrets_file(str(credentials_path), SCOPES)
            creds = flow.run_local_server(port=0)
        token_path.parent.mkdir(parents=True, exist_ok=True)
        token_path.write_text(creds.to_json(), encoding="utf-8")

    return build("classroom", "v1", credentials=creds, cache_discovery=False)
