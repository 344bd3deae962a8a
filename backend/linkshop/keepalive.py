import asyncio
import logging

import requests

logger = logging.getLogger(__name__)

PING_TIMEOUT_SECONDS = 8


def ping_once(url: str) -> None:
    try:
        resp = requests.get(url, timeout=PING_TIMEOUT_SECONDS)
    except requests.RequestException as exc:
        logger.warning("self-ping error: %s", exc)
        return
    logger.info("self-ping status: %s", resp.status_code)


async def self_ping_loop(url: str, interval_seconds: float) -> None:
    """
    Keeps free-tier hosts awake by requesting our own URL on a fixed interval.
    Runs until cancelled.
    """
    logger.info("self-pinger enabled, pinging %s every %ss", url, interval_seconds)
    try:
        while True:
            await asyncio.sleep(interval_seconds)
            await asyncio.to_thread(ping_once, url)
    except asyncio.CancelledError:
        logger.info("self-pinger stopped")
        raise
