# application/services/variable_resolver.py
from __future__ import annotations

import re
from typing import Any, List, Mapping, Optional, Tuple

from application.ports.logger import LoggerPort
from application.services.dynamic_variables import DynamicVariables
from domain.variables import ResolutionPreview, ResolvedVariable, VariableContext, VariableScope

# {{name}} / {{collection.name}} / {{global.name}} / {{$name}}
VARIABLE_PATTERN = re.compile(r"\{\{(\$)?(?:(\w+)\.)?(\w+)\}\}")

_SCOPE_PREFIXES = {
    "collection": VariableScope.COLLECTION,
    "global": VariableScope.GLOBAL,
}


class VariableResolver:
    """
    {{var}} 形式のプレースホルダを VariableContext から展開する。
    - 接頭辞なし: collection → global の順で探す
    - {{collection.var}} / {{global.var}}: 指定スコープのみ
    - {{$timestamp}} 等: DynamicVariables が生成（未知の名前は通常の探索へ）
    - 見つからない場合は空文字
    """

    def __init__(self, logger: LoggerPort, dynamic: Optional[DynamicVariables] = None):
        self._logger = logger
        self._dynamic = dynamic or DynamicVariables()

    def resolve(self, text: Any, ctx: VariableContext) -> Any:
        if not text or not isinstance(text, str):
            return text
        return self._substitute(text, ctx, unresolved=None, variables=None)

    def resolve_object(self, value: Any, ctx: VariableContext) -> Any:
        if isinstance(value, str):
            return self.resolve(value, ctx)
        if isinstance(value, Mapping):
            return {k: self.resolve_object(v, ctx) for k, v in value.items()}
        if isinstance(value, (list, tuple)):
            return [self.resolve_object(v, ctx) for v in value]
        return value

    def preview_resolution(self, text: Any, ctx: VariableContext) -> ResolutionPreview:
        if not text or not isinstance(text, str):
            return ResolutionPreview(resolved=text if text is not None else "")
        unresolved: List[str] = []
        variables: List[ResolvedVariable] = []
        resolved = self._substitute(text, ctx, unresolved=unresolved, variables=variables)
        return ResolutionPreview(resolved=resolved, unresolved=unresolved, variables=variables)

    def _substitute(
        self,
        text: str,
        ctx: VariableContext,
        unresolved: Optional[List[str]],
        variables: Optional[List[ResolvedVariable]],
    ) -> str:
        def replace(match: "re.Match[str]") -> str:
            is_dynamic, prefix, name = match.group(1), match.group(2), match.group(3)
            value, scope = self._resolve_one(bool(is_dynamic), prefix, name, ctx)

            if value == "" and scope is not VariableScope.DYNAMIC:
                if unresolved is not None:
                    unresolved.append(name)
                else:
                    self._logger.warning("variable.unresolved", name=name, placeholder=match.group(0))

            if variables is not None:
                variables.append(
                    ResolvedVariable(name=name, value=value, scope=scope, original_text=match.group(0))
                )
            return value

        return VARIABLE_PATTERN.sub(replace, text)

    def _resolve_one(
        self,
        is_dynamic: bool,
        prefix: Optional[str],
        name: str,
        ctx: VariableContext,
    ) -> Tuple[str, VariableScope]:
        if is_dynamic:
            generated = self._dynamic.resolve(name)
            if generated is not None:
                return generated, VariableScope.DYNAMIC

        scope = _SCOPE_PREFIXES.get(prefix or "")
        if scope is not None:
            return ctx.lookup(scope, name), scope

        # 接頭辞なし（または未知の接頭辞）: collection 優先
        value = ctx.lookup(VariableScope.COLLECTION, name)
        if value != "":
            return value, VariableScope.COLLECTION
        return ctx.lookup(VariableScope.GLOBAL, name), VariableScope.GLOBAL
