# scripts/ussd_console.py
"""
Interactive USSD console against a running service.

Every line typed is posted to ``POST /api/ussd`` as the input for one phone
number and session id. An END reply closes the dialog and the next line
dials again. Type ``quit`` to leave.

    python scripts/ussd_console.py --url http://localhost:8000 --phone +254700000001
"""

import argparse
import asyncio
import os
import sys
import uuid

# ensure app is importable
sys.path.append(os.path.dirname(os.path.dirname(__file__)))

import httpx
from loguru import logger

from app.core.logging_config import setup_logging

QUIT_COMMAND = "quit"


def _parse_args():
    parser = argparse.ArgumentParser(description="Dial the USSD menu from a terminal")
    parser.add_argument("--url", default="http://localhost:8000", help="Base URL of the service")
    parser.add_argument("--phone", default="+254700000001", help="Phone number to dial as")
    return parser.parse_args()


def _new_session_id() -> str:
    return uuid.uuid4().hex[:12]


async def _send(client: httpx.AsyncClient, phone: str, session_id: str, text: str) -> dict | None:
    payload = {"phoneNumber": phone, "input": text, "sessionId": session_id}
    try:
        resp = await client.post("/api/ussd", json=payload)
    except httpx.HTTPError as e:
        logger.error("Request failed: {}", e)
        return None
    if resp.status_code != 200:
        logger.error("Service replied {}: {}", resp.status_code, resp.text)
        return None
    return resp.json()


async def main():
    setup_logging()
    args = _parse_args()
    session_id = _new_session_id()
    logger.info("Dialing {} as {} (session {})", args.url, args.phone, session_id)

    async with httpx.AsyncClient(base_url=args.url, timeout=10) as client:
        # Empty input opens the top menu
        reply = await _send(client, args.phone, session_id, "")
        while True:
            if reply is not None:
                print(f"\n[{reply.get('type')}]\n{reply.get('message')}\n")
                if reply.get("type") == "END":
                    session_id = _new_session_id()
                    logger.info("Session ended; next input dials again (session {})", session_id)

            try:
                text = await asyncio.to_thread(input, "> ")
            except (EOFError, KeyboardInterrupt):
                break
            if text.strip().lower() == QUIT_COMMAND:
                break

            reply = await _send(client, args.phone, session_id, text)

    logger.info("Bye")


if __name__ == "__main__":
    asyncio.run(main())
