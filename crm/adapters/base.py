"""
Adapter 基类：Gateway 记录 <-> UI 模型

读方向（to_ui）：格式不对的记录返回 None 并记日志，不抛异常，
一条坏数据不会中断整个列表的转换
写方向（to_wire）：build_request -> validate -> 去掉 None 字段
"""
import logging
from abc import ABC, abstractmethod
from typing import Any

from crm.metrics import ADAPTER_CONVERTED, ADAPTER_DROPPED

logger = logging.getLogger(__name__)


def pick(source: Any, *names: str, default: Any = None) -> Any:
    """
    从 dataclass 或 dict 中按顺序取第一个存在的字段
    UI 提交的 dict 可能是 camelCase，也可能是 snake_case
    """
    for name in names:
        if isinstance(source, dict):
            if name in source:
                return source[name]
        elif hasattr(source, name):
            return getattr(source, name)
    return default


def clean_str(value: Any) -> str:
    """None -> ''，其他转字符串并去首尾空格"""
    if value is None:
        return ""
    return str(value).strip()


def has_id(record: Any) -> bool:
    if not isinstance(record, dict):
        return False
    record_id = record.get("id")
    if record_id is None:
        return False
    return bool(str(record_id).strip())


class BaseRecordAdapter(ABC):
    """
    所有资源 Adapter 的父类
    新增资源时继承此类并实现 transform / build_request
    """

    resource: str = "unknown"  # 子类覆盖，如 "patients", "appointments"

    def to_ui(self, record: Any):
        """Gateway 记录 -> UI 模型；缺 id 或不是对象时返回 None"""
        if not has_id(record):
            logger.warning("Dropping %s record without id: %r", self.resource, record)
            return None
        return self.transform(record)

    def to_ui_list(self, records: Any) -> list:
        """逐条转换，丢弃无效记录"""
        if not isinstance(records, list):
            return []
        results = []
        for record in records:
            item = self.to_ui(record)
            if item is None:
                ADAPTER_DROPPED.labels(resource=self.resource).inc()
                continue
            results.append(item)
        ADAPTER_CONVERTED.labels(resource=self.resource).inc(len(results))
        return results

    def to_wire(self, model: Any) -> dict:
        """
        UI 模型（或表单 dict）-> Gateway 请求体
        validate 失败时抛出 ValidationError
        """
        request = self.build_request(model)
        self.validate(request)
        return {key: value for key, value in request.items() if value is not None}

    @abstractmethod
    def transform(self, record: dict):
        """把已确认有 id 的 Gateway 记录映射成 UI 模型"""
        pass

    @abstractmethod
    def build_request(self, model: Any) -> dict:
        """把 UI 模型映射成 Gateway 请求字段（值可以是 None）"""
        pass

    def validate(self, request: dict) -> None:
        """检查请求体结构是否完整；默认不检查"""
        pass
