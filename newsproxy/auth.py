from __future__ import annotations

import os
from collections.abc import Mapping

from .errors import MissingAuthKeyError

API_KEY_ENV = "API_KEY"


def lookup_api_key(environ: Mapping[str, str] | None = None) -> str:
    """Read the newsapi key from the environment.

    The key is looked up on every call so that rotating ``API_KEY`` takes
    effect without a restart.
    """
    env = os.environ if environ is None else environ
    try:
        return env[API_KEY_ENV]
    except KeyError:
        raise MissingAuthKeyError("missing API key in the environment") from None
