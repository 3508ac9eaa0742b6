# backend/agrimetrics/core/utils_logging.py

import re
import uuid
from typing import Iterable, Optional, Tuple

# accepted from upstream proxies as-is; anything else is replaced
_REQUEST_ID = re.compile(r"^[A-Za-z0-9._-]{8,64}$")


def generate_request_id() -> str:
    return str(uuid.uuid4())


def request_id_from_headers(headers: Iterable[Tuple[bytes, bytes]]) -> Optional[str]:
    for name, value in headers:
        if name.lower() == b"x-request-id":
            candidate = value.decode("latin-1").strip()
            if _REQUEST_ID.match(candidate):
                return candidate
    return None
