"""
工厂函数：根据资源名返回对应 Adapter
新增资源时在此注册，业务代码无需修改
"""
from typing import Dict, Type

from .appointments import AppointmentAdapter
from .base import BaseRecordAdapter
from .campaigns import CampaignAdapter
from .patients import PatientAdapter
from .teams import TeamAdapter
from .templates import TemplateAdapter

# 资源名 -> Adapter 类
_ADAPTER_REGISTRY: Dict[str, Type[BaseRecordAdapter]] = {
    "patients": PatientAdapter,
    "customers": PatientAdapter,  # Gateway 的叫法
    "appointments": AppointmentAdapter,
    "campaigns": CampaignAdapter,
    "templates": TemplateAdapter,
    "teams": TeamAdapter,
    "team": TeamAdapter,  # 别名
}


def get_adapter(resource: str) -> BaseRecordAdapter:
    """
    根据资源名返回对应的 Adapter 实例
    resource: 如 "patients", "appointments"
    """
    adapter_cls = _ADAPTER_REGISTRY.get(resource.lower())
    if adapter_cls is None:
        raise ValueError(f"Unknown resource: {resource}. Known: {list(_ADAPTER_REGISTRY.keys())}")
    return adapter_cls()


def register_adapter(resource: str, adapter_cls: Type[BaseRecordAdapter]) -> None:
    """注册新 Adapter（可选，用于动态扩展）"""
    _ADAPTER_REGISTRY[resource.lower()] = adapter_cls
