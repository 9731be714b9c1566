import base64
import time
from unittest.mock import MagicMock

import pytest
from nacl.public import PrivateKey

from whistlebox.keys import KeyDirectory
from whistlebox.pipeline import SubmissionPipeline

KEY_URL = "http://testserver/api/public-key"


@pytest.fixture
def reviewer_key():
    """Key pair controlled by the tests, never a deployed one."""
    return PrivateKey.generate()


def make_response(status_code=200, body=None):
    resp = MagicMock()
    resp.status_code = status_code
    resp.ok = 200 <= status_code < 300
    resp.reason = "OK" if resp.ok else "Error"
    if isinstance(body, Exception):
        resp.json.side_effect = body
    else:
        resp.json.return_value = body
    return resp


def make_session(response, delay=0.0):
    session = MagicMock()

    def _get(url, timeout=None):
        if delay:
            time.sleep(delay)
        return response

    session.get.side_effect = _get
    return session


@pytest.fixture
def key_session(reviewer_key):
    body = {"publicKey": base64.b64encode(bytes(reviewer_key.public_key)).decode()}
    return make_session(make_response(200, body), delay=0.05)


@pytest.fixture
def keys(key_session):
    return KeyDirectory(KEY_URL, session=key_session)


@pytest.fixture
def pipeline(keys):
    return SubmissionPipeline(keys)
