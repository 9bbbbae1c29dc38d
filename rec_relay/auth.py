"""One-time Google Drive authorisation for Recording Relay.

Walks the operator through the OAuth consent screen and stores the
resulting refresh token where the uploader expects it:

    python -m rec_relay auth                 paste the code by hand
    python -m rec_relay auth --local-server  let a local browser redirect finish it
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from google_auth_oauthlib.flow import InstalledAppFlow

from rec_relay.config import DRIVE_FILE_SCOPE, Config

logger = logging.getLogger(__name__)


def _redirect_uri(client_path: Path) -> str | None:
    with open(client_path, encoding="utf-8") as fh:
        secrets = json.load(fh)
    client = secrets.get("installed") or secrets.get("web") or {}
    uris = client.get("redirect_uris") or []
    return uris[0] if uris else None


def authorize(client_path: Path, token_path: Path, local_server: bool = False) -> Path:
    """Run the consent flow and write the token file.  Returns its path."""
    if not client_path.exists():
        raise FileNotFoundError(f"OAuth client file not found: {client_path}")

    if local_server:
        flow = InstalledAppFlow.from_client_secrets_file(
            str(client_path), scopes=[DRIVE_FILE_SCOPE]
        )
        credentials = flow.run_local_server(
            port=0, access_type="offline", prompt="consent"
        )
    else:
        flow = InstalledAppFlow.from_client_secrets_file(
            str(client_path),
            scopes=[DRIVE_FILE_SCOPE],
            redirect_uri=_redirect_uri(client_path),
        )
        auth_url, _ = flow.authorization_url(access_type="offline", prompt="consent")
        print("\nAuthorize this app by visiting this URL:\n", auth_url)
        code = input("\nEnter the code from that page here: ").strip()
        flow.fetch_token(code=code)
        credentials = flow.credentials

    if not credentials.refresh_token:
        logger.warning(
            "Google did not return a refresh token; uploads will stop "
            "working once the access token expires."
        )

    token_path.parent.mkdir(parents=True, exist_ok=True)
    token_path.write_text(credentials.to_json(), encoding="utf-8")
    print(f"\nToken saved to {token_path}")
    return token_path


def main(config: Config, local_server: bool = False) -> None:
    """Authorise using the OAuth paths from *config*."""
    authorize(config.oauth_client_path, config.oauth_token_path, local_server)
