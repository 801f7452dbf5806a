from __future__ import annotations

import base64
from typing import Dict

from domain.request import AuthSpec, AuthType

DEFAULT_API_KEY_HEADER = "X-API-Key"


def build_auth_headers(auth: AuthSpec) -> Dict[str, str]:
    """認証方式に応じたヘッダ。資格情報が空ならヘッダは付けない。"""
    if auth.type is AuthType.BEARER and auth.token:
        return {"Authorization": f"Bearer {auth.token}"}

    if auth.type is AuthType.BASIC and (auth.username or auth.password):
        raw = f"{auth.username or ''}:{auth.password or ''}".encode("utf-8")
        return {"Authorization": "Basic " + base64.b64encode(raw).decode("ascii")}

    if auth.type is AuthType.APIKEY and auth.api_key:
        return {auth.api_key_header or DEFAULT_API_KEY_HEADER: auth.api_key}

    return {}
