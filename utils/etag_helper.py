"""
ETag helper for read-heavy task endpoints.

Lets polling clients send If-None-Match and receive 304 when their list is current.
"""

import hashlib
import json
from functools import wraps
from typing import Any, Callable

from flask import request, Response, make_response


def generate_etag(data: Any) -> str:
    """Stable MD5 of the JSON payload (sorted keys), quoted per RFC 7232."""
    json_str = json.dumps(data, sort_keys=True, default=str)
    return f'"{hashlib.md5(json_str.encode("utf-8")).hexdigest()}"'


def with_etag(f: Callable) -> Callable:
    """
    Attach an ETag to JSON responses with status 200 and answer 304 when
    the client's If-None-Match matches.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        response = make_response(f(*args, **kwargs))
        if response.status_code != 200 or not response.is_json:
            return response

        etag = generate_etag(response.get_json())
        if request.headers.get('If-None-Match') == etag:
            not_modified = Response(status=304)
            not_modified.headers['ETag'] = etag
            not_modified.headers['Cache-Control'] = 'no-cache'
            return not_modified

        response.headers['ETag'] = etag
        response.headers['Cache-Control'] = 'no-cache'
        return response

    return decorated_function
