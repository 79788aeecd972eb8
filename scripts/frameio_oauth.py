#!/usr/bin/env python3
"""Frame.io (Adobe IMS) OAuth bootstrap.

Stores the initial Frame.io credential row, or replaces a row that has been
flagged for re-authentication:

1. Builds the Adobe IMS consent URL and opens it in the default browser.
2. Prompts for the `code` from the redirect (or takes it as an argument).
3. Exchanges the code for an access/refresh token pair.
4. Upserts the `frameio_tokens` row in the database pointed to by
   `DATABASE_URL`.

Usage
-----
    python3 scripts/frameio_oauth.py              # interactive
    python3 scripts/frameio_oauth.py <code>       # exchange a code directly
    python3 scripts/frameio_oauth.py --status     # print credential status

Environment variables required
------------------------------
FRAMEIO_ADOBE_CLIENT_ID, FRAMEIO_ADOBE_CLIENT_SECRET, FRAMEIO_REDIRECT_URI
and DATABASE_URL must be set in `.env`.
"""
from __future__ import annotations

import asyncio
import json
import sys
import webbrowser
from pathlib import Path

from dotenv import load_dotenv

PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))
load_dotenv(PROJECT_ROOT / ".env")

from app.config import FrameIOSettings  # noqa: E402
from app.db import Base, engine  # noqa: E402
from app.exceptions.errors import CodeExchangeFailed  # noqa: E402
from app.services.token_service import FrameIOTokenService  # noqa: E402


async def show_status(service: FrameIOTokenService) -> None:
    status = await service.get_status()
    print(json.dumps(status.model_dump(mode="json"), indent=2))


async def exchange(service: FrameIOTokenService, code: str) -> None:
    print("🔄 Exchanging code for tokens …")
    try:
        await service.exchange_code_for_tokens(code)
    except CodeExchangeFailed as exc:
        print(f"❌ Token exchange failed ({exc.status_code}): {exc.body}")
        sys.exit(1)
    print("✅ Frame.io credentials stored")
    await show_status(service)


async def main(argv: list[str]) -> None:
    settings = FrameIOSettings.from_env()
    if not (settings.client_id and settings.client_secret and settings.redirect_uri):
        print("❌ Missing FRAMEIO_ADOBE_CLIENT_ID / SECRET / REDIRECT_URI in .env")
        sys.exit(1)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    service = FrameIOTokenService(settings)
    try:
        if argv and argv[0] == "--status":
            await show_status(service)
            return

        if argv:
            await exchange(service, argv[0])
            return

        auth_url = service.get_auth_url()
        print("🔗 Opening Adobe IMS consent URL in your browser …")
        print(auth_url)
        try:
            webbrowser.open(auth_url)
        except webbrowser.Error:  # pragma: no cover
            print("⚠️  Could not open a browser; open the URL above manually")

        code = input("\nPaste the `code` value from the redirected URL: ").strip()
        if not code:
            print("❌ No code provided – aborting")
            sys.exit(1)
        await exchange(service, code)
    finally:
        await engine.dispose()


if __name__ == "__main__":  # pragma: no cover
    asyncio.run(main(sys.argv[1:]))
