"""
数据转换层：CRM Gateway 的记录格式 <-> UI 模型
所有转换都是无状态的单条映射，列表逐条独立转换
"""
from .types import Appointment, Campaign, Patient, TeamMember, Template
from .base import BaseRecordAdapter
from .factory import get_adapter, register_adapter

__all__ = [
    "Appointment",
    "Campaign",
    "Patient",
    "TeamMember",
    "Template",
    "BaseRecordAdapter",
    "get_adapter",
    "register_adapter",
]
