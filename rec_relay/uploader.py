"""
Google Drive upload stage for Recording Relay.

Uploads finished recordings into a fixed Drive folder.  Uploading is
best-effort: when Drive is not configured the uploader is a silent no-op,
and upload failures are logged and swallowed so that a network outage
never holds up detection of the next recording.
"""

import json
import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from google.auth.exceptions import GoogleAuthError
from google.oauth2.credentials import Credentials
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError
from googleapiclient.http import MediaFileUpload

from rec_relay.config import DRIVE_FILE_SCOPE

logger = logging.getLogger(__name__)

DEFAULT_TOKEN_URI = "https://oauth2.googleapis.com/token"

# Content types for originals uploaded when conversion failed
ORIGINAL_MIME_TYPES = {
    ".flv": "video/x-flv",
    ".mkv": "video/x-matroska",
    ".ts": "video/mp2t",
    ".mp4": "video/mp4",
}


@dataclass(frozen=True)
class UploadResult:
    """Identity of an uploaded Drive file."""
    id: str
    name: str


def mime_type_for_original(path: Path) -> str:
    return ORIGINAL_MIME_TYPES.get(path.suffix.lower(), "application/octet-stream")


def load_credentials(client_path: Path, token_path: Path) -> Credentials:
    """Build user credentials from an OAuth client file and a stored token.

    Accepts both the ``google-auth`` ``to_json()`` token layout and the
    Node ``googleapis`` layout (``access_token`` / ``refresh_token``).
    """
    with open(client_path, encoding="utf-8") as fh:
        secrets = json.load(fh)
    with open(token_path, encoding="utf-8") as fh:
        token = json.load(fh)

    client = secrets.get("installed") or secrets.get("web") or secrets
    refresh_token = token.get("refresh_token")
    if not refresh_token:
        raise ValueError(f"{token_path} does not contain a refresh token")

    return Credentials(
        token=token.get("token") or token.get("access_token"),
        refresh_token=refresh_token,
        token_uri=token.get("token_uri") or client.get("token_uri") or DEFAULT_TOKEN_URI,
        client_id=token.get("client_id") or client.get("client_id"),
        client_secret=token.get("client_secret") or client.get("client_secret"),
        scopes=token.get("scopes") or [DRIVE_FILE_SCOPE],
    )


class DriveUploader:
    """
    Uploads files to a Google Drive folder.

    Parameters
    ----------
    service : Any, optional
        A Drive v3 service resource.  ``None`` disables uploading.
    folder_id : str
        Parent folder for every uploaded file.
    mime_type : str
        Content type attached to uploads unless one is passed explicitly.
    """

    def __init__(
        self,
        service: Any | None = None,
        folder_id: str = "",
        mime_type: str = "video/mp4",
    ):
        self._service = service
        self._folder_id = folder_id
        self._mime_type = mime_type

    @classmethod
    def from_oauth_files(
        cls,
        client_path: Path,
        token_path: Path,
        folder_id: str = "",
        mime_type: str = "video/mp4",
    ) -> "DriveUploader":
        """Create an uploader from OAuth files; disabled if they are unusable."""
        if not client_path.exists() or not token_path.exists():
            logger.info(
                "Drive OAuth files missing (%s, %s); uploads disabled.",
                client_path, token_path,
            )
            return cls(None, folder_id, mime_type)
        try:
            credentials = load_credentials(client_path, token_path)
            service = build("drive", "v3", credentials=credentials, cache_discovery=False)
        except (OSError, ValueError, KeyError, GoogleAuthError) as exc:
            logger.error("Drive initialisation failed: %s; uploads disabled.", exc)
            return cls(None, folder_id, mime_type)
        if not folder_id:
            logger.warning("No drive_folder_id configured; files go to the Drive root.")
        logger.info("Drive client initialised; auto-upload enabled.")
        return cls(service, folder_id, mime_type)

    @property
    def enabled(self) -> bool:
        """True when a Drive client is available."""
        return self._service is not None

    def upload(self, path: Path, mime_type: str | None = None) -> UploadResult | None:
        """Upload *path*.  Returns the Drive file identity, or None."""
        if self._service is None:
            return None

        path = Path(path)
        try:
            size_mb = path.stat().st_size / (1024 * 1024)
        except OSError as exc:
            logger.error("Upload of %s failed: %s", path.name, exc)
            return None

        body: dict[str, Any] = {"name": path.name}
        if self._folder_id:
            body["parents"] = [self._folder_id]

        logger.info("Uploading %s (%.2f MB)", path.name, size_mb)
        started = time.time()
        try:
            media = MediaFileUpload(
                str(path), mimetype=mime_type or self._mime_type, resumable=True
            )
            response = (
                self._service.files()
                .create(body=body, media_body=media, fields="id, name")
                .execute()
            )
        except HttpError as exc:
            logger.error("Upload of %s failed: %s", path.name, exc)
            return None
        except GoogleAuthError as exc:
            logger.error("Upload of %s failed (authentication): %s", path.name, exc)
            return None
        except OSError as exc:
            logger.error("Upload of %s failed: %s", path.name, exc)
            return None

        result = UploadResult(id=response["id"], name=response.get("name", path.name))
        logger.info(
            "Uploaded %s in %.1fs (id=%s)", result.name, time.time() - started, result.id
        )
        return result
