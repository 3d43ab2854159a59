"""
Generation Pipeline

- ServiceProcessor: sequential per-action schema inference for one service
- generator.Generator: one worker per service, module and snapshot output
"""

from .service_processor import ActionResult, ServiceProcessor, ServiceResult

__all__ = [
    "ActionResult",
    "ServiceProcessor",
    "ServiceResult",
]
