# app/utils/patch.py
# 部分更新 (PATCH) 時，子集合欄位的三種狀態：
#   欄位沒傳      -> Unset (不動)
#   傳 [] 或 null -> Clear (全部刪除)
#   傳非空陣列    -> Set(items) (逐筆 diff)
from dataclasses import dataclass, field
from typing import Any, Generic, List, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class Unset:
    """欄位沒有出現在 payload 中"""

    def __repr__(self) -> str:
        return "Unset()"

    def __eq__(self, other) -> bool:
        return isinstance(other, Unset)

    def __hash__(self) -> int:
        return hash(Unset)


class Clear:
    """明確要求清空整個集合"""

    def __repr__(self) -> str:
        return "Clear()"

    def __eq__(self, other) -> bool:
        return isinstance(other, Clear)

    def __hash__(self) -> int:
        return hash(Clear)


@dataclass
class Set(Generic[T]):
    items: List[T] = field(default_factory=list)


PatchValue = Any  # Unset | Clear | Set


def field_patch(payload: BaseModel, name: str) -> PatchValue:
    """
    讀取 payload 上某個集合欄位，轉成 Unset / Clear / Set。
    使用 pydantic 的 model_fields_set 判斷 "沒傳" 與 "傳了 null"。
    """
    if name not in payload.model_fields_set:
        return Unset()
    value = getattr(payload, name)
    if not value:
        return Clear()
    return Set(list(value))


def desired_items(patch: PatchValue) -> List[Any]:
    """Clear 與 Set 都會觸發 diff；Clear 就是 "目標是空集合"。"""
    if isinstance(patch, Set):
        return patch.items
    return []
