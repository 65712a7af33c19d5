"""Enums describing how a request is authorized and how its response is enveloped."""

from enum import Enum


class AccessTokenType(str, Enum):
    """The credential class a request requires."""

    NONE = "none_access_token"
    APP = "app_access_token"
    TENANT = "tenant_access_token"
    USER = "user_access_token"


class EnvelopeShape(str, Enum):
    """Where the output fields sit in the response JSON."""

    # {"code": 0, "msg": "ok", "data": {...output...}}
    WRAPPED = "wrapped"
    # {"code": 0, "msg": "ok", ...output fields...}
    FLAT = "flat"
