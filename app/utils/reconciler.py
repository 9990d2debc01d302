# app/utils/reconciler.py
# 子集合的 diff 演算法 (純函式，不碰資料庫)
#
# 給定 "資料庫現有的列" 與 "前端送來的目標列表"，算出要新增 / 更新 / 刪除哪些列。
# 實際寫入由 MerchandiserService 透過各個 Relation Repository 執行。
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from pydantic import BaseModel

from app.core.exceptions import NotFoundError, ValidationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CollectionSpec:
    """
    描述一個子集合：
    - name: 集合名稱 (錯誤訊息與 log 使用)
    - id_attr: 資料庫列上的主鍵欄位名稱 (payload 一律用 "id")
    - fields: 可由 payload 寫入的欄位
    - required: 新增時必填的欄位
    - defaults: 新增時若沒給值要補上的預設值
    """
    name: str
    id_attr: str
    fields: Tuple[str, ...]
    required: Tuple[str, ...] = ()
    defaults: Dict[str, Any] = field(default_factory=dict)


@dataclass
class ReconcilePlan:
    to_create: List[Dict[str, Any]] = field(default_factory=list)
    # (現有列, 有變動的欄位)
    to_update: List[Tuple[Any, Dict[str, Any]]] = field(default_factory=list)
    to_delete: List[Any] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (self.to_create or self.to_update or self.to_delete)


def _item_fields(item: Any) -> Dict[str, Any]:
    # 只取 "有傳" 的欄位，沒傳的欄位在更新時不應覆蓋
    if isinstance(item, BaseModel):
        return item.model_dump(exclude_unset=True)
    return dict(item)


def reconcile(existing: Sequence[Any], desired: Optional[Iterable[Any]], spec: CollectionSpec) -> ReconcilePlan:
    """
    計算 existing -> desired 的差異。

    - 有 id 且對得到現有列 -> to_update (只放值不同的欄位，完全相同就不更新)
    - 沒有 id -> to_create (必填欄位缺少時丟 ValidationError)
    - 現有列的 id 沒出現在 desired -> to_delete
    - desired 為空 (或 None) -> 全部刪除

    任何一筆有問題，整個集合的計畫都不成立 (直接丟錯，不回傳部分結果)。
    """
    plan = ReconcilePlan()
    existing_by_id = {getattr(row, spec.id_attr): row for row in existing}
    kept_ids = set()

    for index, item in enumerate(desired or []):
        data = _item_fields(item)
        item_id = data.pop("id", None)
        values = {k: v for k, v in data.items() if k in spec.fields}

        if item_id is None:
            for name, default in spec.defaults.items():
                if values.get(name) is None:
                    values[name] = default
            missing = [name for name in spec.required if values.get(name) is None]
            if missing:
                raise ValidationError(
                    f"{spec.name}[{index}] 缺少必填欄位: {', '.join(missing)}",
                    details={"collection": spec.name, "index": index, "missing": missing},
                )
            plan.to_create.append(values)
            continue

        if item_id in kept_ids:
            raise ValidationError(
                f"{spec.name}[{index}] 的 id {item_id} 重複出現",
                details={"collection": spec.name, "index": index, "id": item_id},
            )
        row = existing_by_id.get(item_id)
        if row is None:
            raise NotFoundError(
                f"{spec.name}[{index}] 找不到 id {item_id}",
                details={"collection": spec.name, "index": index, "id": item_id},
            )
        kept_ids.add(item_id)

        for name, default in spec.defaults.items():
            if name in values and values[name] is None:
                values[name] = default
        # 必填欄位不能被改成 null
        cleared = [name for name in spec.required if name in values and values[name] is None]
        if cleared:
            raise ValidationError(
                f"{spec.name}[{index}] 必填欄位不可為空: {', '.join(cleared)}",
                details={"collection": spec.name, "index": index, "missing": cleared},
            )

        changes = {k: v for k, v in values.items() if getattr(row, k) != v}
        if changes:
            plan.to_update.append((row, changes))

    plan.to_delete = [row for row_id, row in existing_by_id.items() if row_id not in kept_ids]

    logger.debug(
        f"reconcile {spec.name}: create={len(plan.to_create)} "
        f"update={len(plan.to_update)} delete={len(plan.to_delete)}"
    )
    return plan
