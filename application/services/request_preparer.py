# application/services/request_preparer.py
from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Dict, Optional, Sequence, Tuple
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from application.services.auth_headers import build_auth_headers
from application.services.payload_encoder import find_header
from application.services.variable_resolver import VariableResolver
from domain.http_method import HttpMethod
from domain.request import AuthSpec, FormField, QueryParam, RequestDescriptor, form_fields_to_map
from domain.variables import VariableContext


@dataclass(frozen=True)
class PreparedRequest:
    method: HttpMethod
    url: str
    headers: Dict[str, str]
    body: Any
    query_params: Tuple[QueryParam, ...]
    timeout_ms: Optional[int]
    transaction_id: Optional[str]


def merge_query_params(url: str, params: Sequence[QueryParam]) -> str:
    """
    有効な params を URL の query に追加する。
    URL に既にある同じ key/value の組は重複させない。
    """
    pairs = [(p.key, p.value) for p in params if p.enabled and p.key]
    if not pairs:
        return url

    parts = urlsplit(url)
    existing = set(parse_qsl(parts.query, keep_blank_values=True))
    extra = [pair for pair in pairs if pair not in existing]
    if not extra:
        return url

    query = parts.query + ("&" if parts.query else "") + urlencode(extra)
    return urlunsplit((parts.scheme, parts.netloc, parts.path, query, parts.fragment))


class RequestPreparer:
    """
    RequestDescriptor のテンプレート項目（url, params, headers, body, auth）を
    VariableContext で展開する。
    """

    def __init__(self, resolver: VariableResolver):
        self._resolver = resolver

    def prepare(self, descriptor: RequestDescriptor, ctx: VariableContext) -> PreparedRequest:
        resolve = lambda s: self._resolver.resolve(s, ctx)  # noqa: E731

        resolved_params = tuple(
            replace(p, key=resolve(p.key), value=resolve(p.value)) for p in descriptor.query_params
        )
        url = merge_query_params(resolve(descriptor.url), resolved_params)

        headers: Dict[str, str] = self._resolver.resolve_object(dict(descriptor.headers or {}), ctx)
        auth_headers = build_auth_headers(self._resolve_auth(descriptor.auth, ctx))
        for key, value in auth_headers.items():
            # 明示ヘッダを優先
            if find_header(headers, key) is None:
                headers[key] = value

        return PreparedRequest(
            method=descriptor.method,
            url=url,
            headers=headers,
            body=self._resolve_body(descriptor.body, ctx),
            query_params=resolved_params,
            timeout_ms=descriptor.timeout_ms,
            transaction_id=descriptor.transaction_id,
        )

    def _resolve_body(self, body: Any, ctx: VariableContext) -> Any:
        if isinstance(body, str):
            return self._resolver.resolve(body, ctx)
        if isinstance(body, tuple) and all(isinstance(f, FormField) for f in body):
            # form fields は encoder が受け取る key/value map にする（空なら body なし）
            if not body:
                return None
            return self._resolver.resolve_object(form_fields_to_map(body), ctx)
        return self._resolver.resolve_object(body, ctx)

    def _resolve_auth(self, auth: AuthSpec, ctx: VariableContext) -> AuthSpec:
        resolve = lambda s: self._resolver.resolve(s, ctx)  # noqa: E731
        return replace(
            auth,
            token=resolve(auth.token),
            username=resolve(auth.username),
            password=resolve(auth.password),
            api_key=resolve(auth.api_key),
            api_key_header=resolve(auth.api_key_header),
        )
