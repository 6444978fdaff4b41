"""领域事件输出：目前只写入结构化日志"""
from typing import Iterable

from core.logging_config import get_logger


logger = get_logger("domain.events")


def log_domain_events(events: Iterable) -> None:
    for event in events:
        logger.info(event.event_name, event_id=event.event_id, **event.payload())
