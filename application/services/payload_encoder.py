# application/services/payload_encoder.py
from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union
from urllib.parse import urlencode

from application.ports.http_client import MultipartPart
from application.ports.logger import LoggerPort
from domain.http_method import HttpMethod
from domain.request import FILE_SENTINEL

CONTENT_TYPE = "Content-Type"
JSON_CONTENT_TYPE = "application/json"
MULTIPART_CONTENT_TYPE = "multipart/form-data"
URLENCODED_CONTENT_TYPE = "application/x-www-form-urlencoded"


@dataclass(frozen=True)
class EncodedPayload:
    headers: Dict[str, str]
    content: Optional[Union[bytes, str]] = None
    files: Optional[List[MultipartPart]] = None
    encoding: str = "raw"


def find_header(headers: Mapping[str, str], name: str) -> Optional[Tuple[str, str]]:
    lowered = name.lower()
    for key, value in headers.items():
        if key.lower() == lowered:
            return key, value
    return None


def _without_header(headers: Mapping[str, str], name: str) -> Dict[str, str]:
    lowered = name.lower()
    return {k: v for k, v in headers.items() if k.lower() != lowered}


def _form_value(value: Any) -> str:
    if isinstance(value, str):
        return value
    # JS の String(true) 等に合わせて JSON 表記にする
    return json.dumps(value, ensure_ascii=False)


class PayloadEncoder:
    """
    Content-Type に応じて body を送信形式へ変換する。

    - multipart/form-data: JSON map を parts に変換、"FILE::<path>" はファイル添付
      （Content-Type は外して boundary を HTTP 層に任せる）
    - application/x-www-form-urlencoded: JSON map を k=v&... へ
    - JSON 指定: 文字列以外は json.dumps、Content-Type 未指定なら application/json
    - それ以外: そのまま
    """

    def __init__(self, logger: LoggerPort):
        self._logger = logger

    async def encode(
        self,
        method: HttpMethod,
        headers: Optional[Mapping[str, str]],
        raw_body: Any,
        is_json: Optional[bool] = None,
    ) -> EncodedPayload:
        out_headers = dict(headers or {})
        if not method.has_body:
            return EncodedPayload(headers=out_headers)

        found = find_header(out_headers, CONTENT_TYPE)
        content_type = found[1].lower() if found else ""
        structured = isinstance(raw_body, (str, Mapping))

        if MULTIPART_CONTENT_TYPE in content_type and structured:
            return await self._encode_multipart(out_headers, raw_body)

        if URLENCODED_CONTENT_TYPE in content_type and structured:
            return self._encode_urlencoded(out_headers, raw_body)

        json_intent = method.is_json if is_json is None else is_json
        if json_intent and raw_body is not None and raw_body != "":
            if found is None:
                out_headers[CONTENT_TYPE] = JSON_CONTENT_TYPE
            content = raw_body if isinstance(raw_body, (str, bytes)) else json.dumps(raw_body)
            return EncodedPayload(headers=out_headers, content=content, encoding="json")

        return EncodedPayload(headers=out_headers, content=self._passthrough(raw_body))

    async def _encode_multipart(self, headers: Dict[str, str], raw_body: Any) -> EncodedPayload:
        # boundary は HTTP 層が付与する
        stripped = _without_header(headers, CONTENT_TYPE)
        fields = self._parse_map(raw_body, "multipart")
        if fields is None:
            return EncodedPayload(headers=stripped, files=[], encoding="multipart")

        parts: List[MultipartPart] = []
        for key, value in fields.items():
            if isinstance(value, str) and value.startswith(FILE_SENTINEL):
                path = Path(value[len(FILE_SENTINEL):])
                if not path.is_file():
                    self._logger.warning("payload.file_not_found", field=key, path=str(path))
                    continue
                data = await asyncio.to_thread(path.read_bytes)
                parts.append((key, (path.name, data)))
            else:
                parts.append((key, (None, _form_value(value))))

        self._logger.debug("payload.multipart", parts=[k for k, _ in parts])
        return EncodedPayload(headers=stripped, files=parts, encoding="multipart")

    def _encode_urlencoded(self, headers: Dict[str, str], raw_body: Any) -> EncodedPayload:
        fields = self._parse_map(raw_body, "urlencoded")
        if fields is None:
            return EncodedPayload(headers=headers, content="", encoding="urlencoded")
        pairs = [(str(k), _form_value(v)) for k, v in fields.items()]
        return EncodedPayload(headers=headers, content=urlencode(pairs), encoding="urlencoded")

    def _parse_map(self, raw_body: Any, branch: str) -> Optional[Mapping[str, Any]]:
        if isinstance(raw_body, Mapping):
            return raw_body
        try:
            parsed = json.loads(raw_body)
        except (TypeError, ValueError) as e:
            self._logger.error("payload.encode_failed", branch=branch, error=str(e))
            return None
        if not isinstance(parsed, dict):
            self._logger.error(
                "payload.encode_failed",
                branch=branch,
                error=f"expected JSON object, got {type(parsed).__name__}",
            )
            return None
        return parsed

    def _passthrough(self, raw_body: Any) -> Optional[Union[bytes, str]]:
        if raw_body is None or isinstance(raw_body, (bytes, str)):
            return raw_body
        return json.dumps(raw_body)
