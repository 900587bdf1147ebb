"""
Desktop entry point: open one document for a signed-in user.

    python main.py 42 --email alice@example.com --token <bearer> [--name "Alice"]

The token may also come from the environment variable DOCSIGN_TOKEN.
"""
from __future__ import annotations

import argparse
import asyncio
import os
import sys
from typing import Optional, Sequence

from core.common.app_context import AppContext
from core.logging.logic.logger import logger
from core.models.user import SessionUser
from documentlifecycle.gui.document_window import DocumentWindow
from documentlifecycle.logic.api.document_api_client import DocumentApiClient
from documentlifecycle.logic.services.document_session import DocumentSession
from documentlifecycle.logic.services.workflow_service import WorkflowService
from signature.logic.camera_capture import OpenCvMediaDevices
from signature.logic.signature_vault import SignatureVault


def _parse_args(argv: Optional[Sequence[str]]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Review and sign a document.")
    parser.add_argument("document_id", type=int, help="id of the document to open")
    parser.add_argument("--email", required=True, help="e-mail of the signed-in user")
    parser.add_argument("--name", default="", help="display name of the signed-in user")
    parser.add_argument("--token", default=os.environ.get("DOCSIGN_TOKEN", ""), help="bearer token")
    parser.add_argument("--no-camera", action="store_true", help="hide the camera capture button")
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _parse_args(argv)
    if not args.token:
        print("A bearer token is required (--token or DOCSIGN_TOKEN).", file=sys.stderr)
        return 2

    user = SessionUser(email=args.email.strip(), name=args.name.strip(), token=args.token)
    AppContext.set_current_user(user)
    store = AppContext.store()

    loop = asyncio.new_event_loop()
    api = DocumentApiClient(user.token)
    session = DocumentSession(
        WorkflowService(api),
        user,
        store,
        on_session_expired=AppContext.expire_session,
    )
    window = DocumentWindow(
        session,
        loop=loop,
        vault=SignatureVault(store),
        devices=None if args.no_camera else OpenCvMediaDevices(),
    )
    window.view.open(args.document_id)
    try:
        window.mainloop()
    finally:
        loop.run_until_complete(api.aclose())
        loop.close()
        AppContext.clear_current_user()
        logger.log("App", "Exit", user_id=user.email)
    return 0


if __name__ == "__main__":
    sys.exit(main())
