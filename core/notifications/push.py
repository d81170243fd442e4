"""Push notification delivery through the Expo push service."""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, List, Optional, Sequence

import requests

from config.settings import get_settings

logger = logging.getLogger("notifications.push")

MAX_WORKERS = 8
REQUEST_TIMEOUT = 10


class PushDeliveryError(Exception):
    """At least one device could not be notified."""

    def __init__(self, failures: Dict[str, str]):
        super().__init__(f"Push delivery failed for {len(failures)} device(s)")
        self.failures = failures


def build_message(token: str, title: str, body: str, data: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    message = {"to": token, "sound": "default", "title": title, "body": body}
    if data is not None:
        message["data"] = data
    return message


def _post(session: requests.Session, url: str, message: Dict[str, Any]) -> Dict[str, Any]:
    response = session.post(url, json=message, timeout=REQUEST_TIMEOUT)
    response.raise_for_status()
    return response.json()


def send_push_notifications(tokens: Sequence[str], title: str, body: str,
                            data: Optional[Dict[str, Any]] = None,
                            session: Optional[requests.Session] = None) -> List[Dict[str, Any]]:
    """Send one push message per device token, concurrently.

    Waits for every request to finish before reporting.

    Args:
        tokens: Expo push tokens
        title: Notification title
        body: Notification body
        data: Optional JSON payload delivered to the app
        session: requests session to use (a fresh one by default)

    Returns:
        The push service's JSON answer for each token, in token order

    Raises:
        PushDeliveryError: if any request failed; raised after all have completed
    """
    if not tokens:
        return []

    url = get_settings().EXPO_PUSH_URL
    http = session or requests.Session()
    logger.info("Sending push notification %r to %d device(s)", title, len(tokens))

    with ThreadPoolExecutor(max_workers=min(MAX_WORKERS, len(tokens))) as executor:
        futures = [
            executor.submit(_post, http, url, build_message(token, title, body, data))
            for token in tokens
        ]

    results: List[Dict[str, Any]] = []
    failures: Dict[str, str] = {}
    for token, future in zip(tokens, futures):
        try:
            results.append(future.result())
        except (requests.RequestException, ValueError) as e:
            logger.warning("Push to %s failed: %s", token, e)
            failures[token] = str(e)

    if session is None:
        http.close()

    if failures:
        raise PushDeliveryError(failures)
    return results
