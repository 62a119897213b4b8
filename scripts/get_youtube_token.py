#!/usr/bin/env python3
"""YouTube OAuth bootstrap script.

Runs the installed-app consent flow once with the configured OAuth client
and prints the refresh token the YouTube publisher uses. Offline access and
a forced consent prompt make Google return a refresh token every time.

Usage:
    ./scripts/get_youtube_token.py [--port PORT] [--no-browser]

Requires RADIO_YOUTUBE_CLIENT_ID and RADIO_YOUTUBE_CLIENT_SECRET. Store the
printed value as RADIO_YOUTUBE_REFRESH_TOKEN.

Exit codes:
    0: Refresh token obtained
    1: Missing client credentials or the consent flow failed
"""

import argparse
import logging
import sys
from pathlib import Path

from google_auth_oauthlib.flow import InstalledAppFlow

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from lofi_radio.config import config

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    handlers=[
        logging.StreamHandler(sys.stdout),
    ],
)
logger = logging.getLogger(__name__)

# youtube.upload for videos, youtube for playlist inserts
SCOPES = [
    "https://www.googleapis.com/auth/youtube.upload",
    "https://www.googleapis.com/auth/youtube",
]


def build_client_config(client_id: str, client_secret: str, token_uri: str) -> dict:
    """Client config in the shape of a downloaded client_secrets.json."""
    return {
        "installed": {
            "client_id": client_id,
            "client_secret": client_secret,
            "auth_uri": "https://accounts.google.com/o/oauth2/auth",
            "token_uri": token_uri,
            "redirect_uris": ["http://localhost"],
        }
    }


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Obtain a YouTube OAuth refresh token")
    parser.add_argument("--port", type=int, default=0, help="Local redirect port (0 picks a free port)")
    parser.add_argument("--no-browser", action="store_true", help="Print the consent URL instead of opening it")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    publishing = config.publishing

    if not publishing.youtube_client_id or not publishing.youtube_client_secret:
        logger.error("RADIO_YOUTUBE_CLIENT_ID and RADIO_YOUTUBE_CLIENT_SECRET must be set")
        return 1

    flow = InstalledAppFlow.from_client_config(
        build_client_config(
            publishing.youtube_client_id,
            publishing.youtube_client_secret.get_secret_value(),
            publishing.youtube_token_uri,
        ),
        scopes=SCOPES,
    )

    logger.info("🛰️ Starting YouTube consent flow")
    try:
        creds = flow.run_local_server(
            port=args.port,
            open_browser=not args.no_browser,
            access_type="offline",
            prompt="consent",
        )
    except Exception as e:
        logger.error(f"❌ Failed to retrieve tokens: {e}")
        return 1

    if not creds.refresh_token:
        logger.error("❌ Google returned no refresh token; revoke the app's access and retry")
        return 1

    logger.info("✅ Refresh token obtained. Save it in your .env file:")
    print(f"RADIO_YOUTUBE_REFRESH_TOKEN={creds.refresh_token}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
