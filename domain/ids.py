from __future__ import annotations

from typing import Tuple, Union

EntityId = Union[int, str]


def entity_sort_key(entity_id: EntityId | None) -> Tuple[int, int, str]:
    """
    数値 / 文字列が混在する id のソートキー。
    None が先頭、数値 id は文字列 id より前。
    """
    if entity_id is None:
        return (0, 0, "")
    if isinstance(entity_id, bool):
        return (1, int(entity_id), "")
    if isinstance(entity_id, int):
        return (1, entity_id, "")
    return (2, 0, str(entity_id))
