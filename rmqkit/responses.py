"""Response codes and the decoded headers of common responses."""

import enum
from dataclasses import dataclass


class ResponseCode(enum.IntEnum):
    """Status codes carried in the code field of a response command."""

    SUCCESS = 0
    ERROR = 1
    FLUSH_DISK_TIMEOUT = 10
    SLAVE_NOT_AVAILABLE = 11
    FLUSH_SLAVE_TIMEOUT = 12
    SERVICE_NOT_AVAILABLE = 14
    NO_PERMISSION = 16
    TOPIC_NOT_EXIST = 17
    PULL_NOT_FOUND = 19
    PULL_RETRY_IMMEDIATELY = 20
    PULL_OFFSET_MOVED = 21
    QUERY_NOT_FOUND = 22


@dataclass
class SendMessageResponse:
    """Where a sent message was stored."""

    msg_id: str = ""
    queue_id: int = 0
    queue_offset: int = 0
    transaction_id: str = ""
    msg_region: str = ""


@dataclass
class PullMessageResponse:
    """Offsets and broker hint returned with a pull."""

    suggest_which_broker_id: int = 0
    next_begin_offset: int = 0
    min_offset: int = 0
    max_offset: int = 0