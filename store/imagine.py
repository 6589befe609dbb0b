# store/imagine.py
"""
Client for the Imagine generative-image API.

A generation is asynchronous: submit a prompt, poll its status until it is
``completed``, then read the result URLs.
"""
import logging
import time

import requests
from django.conf import settings

logger = logging.getLogger(__name__)

PROMPT_PREFIX = "a pattern of  "
PROMPT_PARAMS = " --turbo --tile --stylize 200"

COMPLETED = 'completed'
FAILED = 'failed'


class ImagineError(Exception):
    def __init__(self, message, status_code=502):
        super().__init__(message)
        self.status_code = status_code


class NotReady(ImagineError):
    def __init__(self, status, progress=None):
        super().__init__("Image generation in progress", status_code=202)
        self.status = status
        self.progress = progress


def build_prompt(prompt, style=None, colors=None):
    """
    Fold the shopper's style and colour choices into the prompt text.
    """
    full_prompt = prompt.strip()
    if style and style.strip():
        full_prompt += f", {style.strip()} style"
    if colors:
        full_prompt += f", with colors: {', '.join(colors)}"
    return full_prompt


def _headers():
    return {
        'Authorization': f"Bearer {settings.IMAGINE_API_KEY}",
        'Content-Type': 'application/json',
    }


def _request(method, url, **kwargs):
    try:
        response = requests.request(method, url, headers=_headers(), timeout=settings.IMAGINE_TIMEOUT, **kwargs)
    except requests.RequestException as e:
        raise ImagineError(f"Imagine API unreachable: {e}", status_code=502) from e

    if not response.ok:
        try:
            detail = response.json()
        except ValueError:
            detail = response.text
        logger.error("Error from Imagine API (%s): %s", response.status_code, detail)
        raise ImagineError("Imagine API request failed", status_code=response.status_code)

    try:
        payload = response.json()
    except ValueError:
        raise ImagineError("Unexpected response format from Imagine API", status_code=500)
    if not isinstance(payload, dict) or not isinstance(payload.get('data'), dict):
        raise ImagineError("Unexpected response format from Imagine API", status_code=500)
    return payload['data']


def _item_url(request_id):
    return f"{settings.IMAGINE_API_URL}{request_id}"


def submit_prompt(prompt):
    """
    Start a tileable pattern generation and return its request id.
    """
    if not prompt or not isinstance(prompt, str):
        raise ImagineError("Invalid prompt provided", status_code=400)
    full_prompt = PROMPT_PREFIX + prompt + PROMPT_PARAMS
    data = _request('POST', settings.IMAGINE_API_URL, json={'prompt': full_prompt})
    logger.info("Submitted Imagine request %s", data.get('id'))
    return data['id']


def fetch_status(request_id):
    data = _request('GET', _item_url(request_id))
    return {'status': data.get('status'), 'progress': data.get('progress')}


def fetch_results(request_id):
    data = _request('GET', _item_url(request_id))
    if data.get('status') != COMPLETED:
        raise NotReady(data.get('status'), data.get('progress'))
    return {
        'upscaled_urls': data.get('upscaled_urls') or [],
        'stitched_url': data.get('url'),
    }


def wait_for_images(request_id, interval=None, timeout=None, sleep=time.sleep):
    """
    Poll a request at a fixed interval until it completes, fails or times out.
    """
    interval = settings.IMAGINE_POLL_INTERVAL if interval is None else interval
    timeout = settings.IMAGINE_POLL_TIMEOUT if timeout is None else timeout
    waited = 0
    while True:
        status = fetch_status(request_id)
        logger.debug("Imagine request %s: %s (%s)", request_id, status['status'], status['progress'])
        if status['status'] == COMPLETED:
            return fetch_results(request_id)
        if status['status'] == FAILED:
            raise ImagineError(f"Image generation {request_id} failed", status_code=502)
        if waited >= timeout:
            raise ImagineError(f"Timed out waiting for image generation {request_id}", status_code=504)
        sleep(interval)
        waited += interval
