"""
执行器模块：暂停闸门、取消、探测/动作 API、任务运行器、推图引擎
"""
from .cancel import CancelToken, OperationCancelled
from .pause_gate import PauseGate
from .types import BattlePushResult, TemplateMatch, TemplateQuery

__all__ = [
    "CancelToken",
    "OperationCancelled",
    "PauseGate",
    "BattlePushResult",
    "TemplateMatch",
    "TemplateQuery",
]
