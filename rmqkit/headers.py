"""Request codes and the custom headers carried in a request's ext fields."""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass, field
from datetime import timedelta

from .mixall import DEFAULT_TOPIC

DEFAULT_TOPIC_QUEUE_NUMS = 4

_INT_PATTERN = re.compile(r"[+-]?[0-9]+", re.ASCII)
_TRUE_WORDS = frozenset({"1", "t", "T", "TRUE", "true", "True"})
# Indexed by a bool: False -> "false", True -> "true".
_BOOL_TEXT = ("false", "true")


class RequestCode(enum.IntEnum):
    """Codes that identify the kind of a request command."""

    SEND_MESSAGE = 10
    PULL_MESSAGE = 11
    QUERY_MESSAGE = 12
    QUERY_CONSUMER_OFFSET = 14
    UPDATE_CONSUMER_OFFSET = 15
    CREATE_TOPIC = 17
    GET_BROKER_CONFIG = 26
    GET_BROKER_RUNTIME_INFO = 28
    SEARCH_OFFSET_BY_TIMESTAMP = 29
    GET_MAX_OFFSET = 30
    GET_MIN_OFFSET = 31
    VIEW_MESSAGE_BY_ID = 33
    HEART_BEAT = 34
    CONSUMER_SEND_MSG_BACK = 36
    END_TRANSACTION = 37
    GET_CONSUMER_LIST_BY_GROUP = 38
    CHECK_TRANSACTION_STATE = 39
    NOTIFY_CONSUMER_IDS_CHANGED = 40
    LOCK_BATCH_MQ = 41
    UNLOCK_BATCH_MQ = 42
    GET_ROUTE_INFO_BY_TOPIC = 105
    GET_BROKER_CLUSTER_INFO = 106
    UPDATE_CREATE_SUBSCRIPTION_GROUP = 200
    GET_ALL_SUBSCRIPTION_GROUP_CONFIG = 201
    GET_TOPIC_STATS = 202
    GET_CONSUMER_CONNECTION_LIST = 203
    GET_ALL_TOPIC_LIST_FROM_NAME_SERVER = 206
    DELETE_GROUP_IN_BROKER = 207
    GET_CONSUMER_STATS_FROM_SERVER = 208
    DELETE_TOPIC_IN_BROKER = 215
    DELETE_TOPIC_IN_NAMESRV = 216
    RESET_CONSUMER_OFFSET = 220
    GET_CONSUMER_STATS_FROM_CLIENT = 221
    INVOKE_BROKER_TO_RESET_OFFSET = 222
    QUERY_TOPIC_CONSUME_BY_WHO = 300
    GET_SYSTEM_TOPIC_LIST_FROM_NS = 304
    GET_SYSTEM_TOPIC_LIST_FROM_BROKER = 305
    GET_CONSUMER_RUNNING_INFO = 307
    CONSUME_MESSAGE_DIRECTLY = 309
    SEND_BATCH_MESSAGE = 320
    SEND_REPLY_MESSAGE = 324
    SEND_REPLY_MESSAGE_V2 = 325
    PUSH_REPLY_MESSAGE_TO_CLIENT = 326


def _parse_bool(text: str) -> bool:
    """Lenient boolean parse; anything unrecognised is false."""
    return text in _TRUE_WORDS


def _parse_int(text: str, bits: int = 64) -> int:
    """Decimal parse; malformed text gives 0, out-of-range text is clamped."""
    if not _INT_PATTERN.fullmatch(text):
        return 0
    value = int(text)
    low, high = -(1 << (bits - 1)), (1 << (bits - 1)) - 1
    return min(max(value, low), high)


def _millis(duration: timedelta) -> int:
    micros = duration // timedelta(microseconds=1)
    ms = abs(micros) // 1000
    return -ms if micros < 0 else ms


@dataclass
class SendMessageRequestHeader:
    producer_group: str = ""
    topic: str = ""
    queue_id: int = 0
    sys_flag: int = 0
    born_timestamp: int = 0
    flag: int = 0
    properties: str = ""
    reconsume_times: int = 0
    unit_mode: bool = False
    max_reconsume_times: int = 0
    batch: bool = False
    default_topic: str = ""
    default_topic_queue_nums: int = 0

    def encode(self) -> dict[str, str]:
        """Ext fields; the default topic and its queue count are always the fixed defaults."""
        return {
            "producerGroup": self.producer_group,
            "topic": self.topic,
            "queueId": str(self.queue_id),
            "sysFlag": str(self.sys_flag),
            "bornTimestamp": str(self.born_timestamp),
            "flag": str(self.flag),
            "reconsumeTimes": str(self.reconsume_times),
            "unitMode": _BOOL_TEXT[bool(self.unit_mode)],
            "maxReconsumeTimes": str(self.max_reconsume_times),
            "defaultTopic": DEFAULT_TOPIC,
            "defaultTopicQueueNums": str(DEFAULT_TOPIC_QUEUE_NUMS),
            "batch": _BOOL_TEXT[bool(self.batch)],
            "properties": self.properties,
        }


@dataclass
class SendMessageRequestV2Header(SendMessageRequestHeader):
    """The send header with single-letter field names."""

    def encode(self) -> dict[str, str]:
        return {
            "a": self.producer_group,
            "b": self.topic,
            "c": self.default_topic,
            "d": str(self.default_topic_queue_nums),
            "e": str(self.queue_id),
            "f": str(self.sys_flag),
            "g": str(self.born_timestamp),
            "h": str(self.flag),
            "i": self.properties,
            "j": str(self.reconsume_times),
            "k": _BOOL_TEXT[bool(self.unit_mode)],
            "l": str(self.max_reconsume_times),
            "m": _BOOL_TEXT[bool(self.batch)],
        }


@dataclass
class EndTransactionRequestHeader:
    producer_group: str = ""
    tran_state_table_offset: int = 0
    commit_log_offset: int = 0
    commit_or_rollback: int = 0
    from_transaction_check: bool = False
    msg_id: str = ""
    transaction_id: str = ""

    def encode(self) -> dict[str, str]:
        return {
            "producerGroup": self.producer_group,
            "tranStateTableOffset": str(self.tran_state_table_offset),
            "commitLogOffset": str(self.commit_log_offset),
            "commitOrRollback": str(self.commit_or_rollback),
            "fromTransactionCheck": _BOOL_TEXT[bool(self.from_transaction_check)],
            "msgId": self.msg_id,
            "transactionId": self.transaction_id,
        }


@dataclass
class CheckTransactionStateRequestHeader:
    tran_state_table_offset: int = 0
    commit_log_offset: int = 0
    msg_id: str = ""
    transaction_id: str = ""
    offset_msg_id: str = ""

    def encode(self) -> dict[str, str]:
        return {
            "tranStateTableOffset": str(self.tran_state_table_offset),
            "commitLogOffset": str(self.commit_log_offset),
            "msgId": self.msg_id,
            "transactionId": self.transaction_id,
            "offsetMsgId": self.offset_msg_id,
        }

    def decode(self, properties: dict[str, str]) -> None:
        """Fill fields from ``properties``.

        The transaction id and offset message id both land in ``msg_id``, as
        the broker-facing decoder has always done.
        """
        if not properties:
            return
        if "tranStateTableOffset" in properties:
            self.tran_state_table_offset = _parse_int(properties["tranStateTableOffset"])
        if "commitLogOffset" in properties:
            self.commit_log_offset = _parse_int(properties["commitLogOffset"])
        for key in ("msgId", "transactionId", "offsetMsgId"):
            if key in properties:
                self.msg_id = properties[key]


@dataclass
class ConsumerSendMsgBackRequestHeader:
    group: str = ""
    offset: int = 0
    delay_level: int = 0
    origin_msg_id: str = ""
    origin_topic: str = ""
    unit_mode: bool = False
    max_reconsume_times: int = 0

    def encode(self) -> dict[str, str]:
        return {
            "group": self.group,
            "offset": str(self.offset),
            "delayLevel": str(self.delay_level),
            "originMsgId": self.origin_msg_id,
            "originTopic": self.origin_topic,
            "unitMode": _BOOL_TEXT[bool(self.unit_mode)],
            "maxReconsumeTimes": str(self.max_reconsume_times),
        }


@dataclass
class PullMessageRequestHeader:
    consumer_group: str = ""
    topic: str = ""
    queue_id: int = 0
    queue_offset: int = 0
    max_msg_nums: int = 0
    sys_flag: int = 0
    commit_offset: int = 0
    suspend_timeout: timedelta = field(default_factory=timedelta)
    sub_expression: str = ""
    sub_version: int = 0
    expression_type: str = ""

    def encode(self) -> dict[str, str]:
        return {
            "consumerGroup": self.consumer_group,
            "topic": self.topic,
            "queueId": str(self.queue_id),
            "queueOffset": str(self.queue_offset),
            "maxMsgNums": str(self.max_msg_nums),
            "sysFlag": str(self.sys_flag),
            "commitOffset": str(self.commit_offset),
            "suspendTimeoutMillis": str(_millis(self.suspend_timeout)),
            "subscription": self.sub_expression,
            "subVersion": str(self.sub_version),
            "expressionType": self.expression_type,
        }


@dataclass
class GetConsumerListRequestHeader:
    consumer_group: str = ""

    def encode(self) -> dict[str, str]:
        return {"consumerGroup": self.consumer_group}


@dataclass
class GetConsumerConnectionListRequestHeader:
    consumer_group: str = ""

    def encode(self) -> dict[str, str]:
        return {"consumerGroup": self.consumer_group}


@dataclass
class GetMaxOffsetRequestHeader:
    topic: str = ""
    queue_id: int = 0

    def encode(self) -> dict[str, str]:
        return {"topic": self.topic, "queueId": str(self.queue_id)}


@dataclass
class QueryConsumerOffsetRequestHeader:
    consumer_group: str = ""
    topic: str = ""
    queue_id: int = 0

    def encode(self) -> dict[str, str]:
        return {
            "consumerGroup": self.consumer_group,
            "topic": self.topic,
            "queueId": str(self.queue_id),
        }


@dataclass
class SearchOffsetRequestHeader:
    topic: str = ""
    queue_id: int = 0
    timestamp: int = 0

    def encode(self) -> dict[str, str]:
        return {
            "topic": self.topic,
            "queueId": str(self.queue_id),
            "timestamp": str(self.timestamp),
        }


@dataclass
class UpdateConsumerOffsetRequestHeader:
    consumer_group: str = ""
    topic: str = ""
    queue_id: int = 0
    commit_offset: int = 0

    def encode(self) -> dict[str, str]:
        return {
            "consumerGroup": self.consumer_group,
            "topic": self.topic,
            "queueId": str(self.queue_id),
            "commitOffset": str(self.commit_offset),
        }


@dataclass
class GetRouteInfoRequestHeader:
    topic: str = ""

    def encode(self) -> dict[str, str]:
        return {"topic": self.topic}


@dataclass
class GetTopicStatsInfoRequestHeader:
    topic: str = ""

    def encode(self) -> dict[str, str]:
        return {"topic": self.topic}


@dataclass
class QueryTopicConsumeByWhoRequestHeader:
    topic: str = ""

    def encode(self) -> dict[str, str]:
        return {"topic": self.topic}


@dataclass
class GetConsumerRunningInfoHeader:
    consumer_group: str = ""
    client_id: str = ""
    jstack_enable: bool = False

    def encode(self) -> dict[str, str]:
        return {
            "consumerGroup": self.consumer_group,
            "clientId": self.client_id,
            "jstackEnable": _BOOL_TEXT[bool(self.jstack_enable)],
        }

    def decode(self, properties: dict[str, str]) -> None:
        if not properties:
            return
        if "consumerGroup" in properties:
            self.consumer_group = properties["consumerGroup"]
        if "clientId" in properties:
            self.client_id = properties["clientId"]
        if "jstackEnable" in properties:
            self.jstack_enable = _parse_bool(properties["jstackEnable"])


@dataclass
class QueryMessageRequestHeader:
    topic: str = ""
    key: str = ""
    max_num: int = 0
    begin_timestamp: int = 0
    end_timestamp: int = 0

    def encode(self) -> dict[str, str]:
        return {
            "topic": self.topic,
            "key": self.key,
            "maxNum": str(self.max_num),
            "beginTimestamp": str(self.begin_timestamp),
            "endTimestamp": str(self.end_timestamp),
        }


@dataclass
class ViewMessageRequestHeader:
    offset: int = 0

    def encode(self) -> dict[str, str]:
        return {"offset": str(self.offset)}


@dataclass
class CreateTopicRequestHeader:
    topic: str = ""
    default_topic: str = ""
    read_queue_nums: int = 0
    write_queue_nums: int = 0
    perm: int = 0
    topic_filter_type: str = ""
    topic_sys_flag: int = 0
    order: bool = False

    def encode(self) -> dict[str, str]:
        return {
            "topic": self.topic,
            "defaultTopic": self.default_topic,
            "readQueueNums": str(self.read_queue_nums),
            "writeQueueNums": str(self.write_queue_nums),
            "perm": str(self.perm),
            "topicFilterType": self.topic_filter_type,
            "topicSysFlag": str(self.topic_sys_flag),
            "order": _BOOL_TEXT[bool(self.order)],
        }


@dataclass
class TopicListRequestHeader:
    topic: str = ""

    def encode(self) -> dict[str, str]:
        return {"topic": self.topic}


@dataclass
class DeleteTopicRequestHeader:
    topic: str = ""

    def encode(self) -> dict[str, str]:
        return {"topic": self.topic}


@dataclass
class DeleteSubscriptionGroupRequestHeader:
    group_name: str = ""

    def encode(self) -> dict[str, str]:
        return {"groupName": self.group_name}


@dataclass
class ResetOffsetHeader:
    topic: str = ""
    group: str = ""
    timestamp: int = 0
    is_force: bool = False

    def encode(self) -> dict[str, str]:
        return {
            "topic": self.topic,
            "group": self.group,
            "timestamp": str(self.timestamp),
        }

    def decode(self, properties: dict[str, str]) -> None:
        if not properties:
            return
        if "topic" in properties:
            self.topic = properties["topic"]
        if "group" in properties:
            self.group = properties["group"]
        if "timestamp" in properties:
            self.timestamp = _parse_int(properties["timestamp"])


@dataclass
class ConsumeMessageDirectlyHeader:
    consumer_group: str = ""
    client_id: str = ""
    msg_id: str = ""
    broker_name: str = ""

    def encode(self) -> dict[str, str]:
        return {
            "consumerGroup": self.consumer_group,
            "clientId": self.client_id,
            "msgId": self.msg_id,
            "brokerName": self.broker_name,
        }

    def decode(self, properties: dict[str, str]) -> None:
        if not properties:
            return
        if "consumerGroup" in properties:
            self.consumer_group = properties["consumerGroup"]
        if "clientId" in properties:
            self.client_id = properties["clientId"]
        if "msgId" in properties:
            self.msg_id = properties["msgId"]
        if "brokerName" in properties:
            self.broker_name = properties["brokerName"]


@dataclass
class GetConsumerStatusRequestHeader:
    topic: str = ""
    group: str = ""
    client_addr: str = ""

    def encode(self) -> dict[str, str]:
        return {
            "topic": self.topic,
            "group": self.group,
            "clientAddr": self.client_addr,
        }

    def decode(self, properties: dict[str, str]) -> None:
        if not properties:
            return
        if "topic" in properties:
            self.topic = properties["topic"]
        if "group" in properties:
            self.group = properties["group"]
        if "clientAddr" in properties:
            self.client_addr = properties["clientAddr"]


@dataclass
class GetConsumeStatsRequestHeader:
    consumer_group: str = ""
    topic: str = ""

    def encode(self) -> dict[str, str]:
        return {"topic": self.topic, "consumerGroup": self.consumer_group}

    def decode(self, properties: dict[str, str]) -> None:
        if "topic" in properties:
            self.topic = properties["topic"]
        if "consumerGroup" in properties:
            self.consumer_group = properties["consumerGroup"]


@dataclass
class ReplyMessageRequestHeader:
    producer_group: str = ""
    topic: str = ""
    default_topic: str = ""
    default_topic_queue_nums: int = 0
    queue_id: int = 0
    sys_flag: int = 0
    born_timestamp: int = 0
    flag: int = 0
    properties: str = ""
    reconsume_times: int = 0
    unit_mode: bool = False
    born_host: str = ""
    store_host: str = ""
    store_timestamp: int = 0

    def encode(self) -> dict[str, str]:
        return {
            "producerGroup": self.producer_group,
            "topic": self.topic,
            "defaultTopic": self.default_topic,
            "defaultTopicQueueNums": str(self.default_topic_queue_nums),
            "queueId": str(self.queue_id),
            "sysFlag": str(self.sys_flag),
            "bornTimestamp": str(self.born_timestamp),
            "flag": str(self.flag),
            "properties": self.properties,
            "reconsumeTimes": str(self.reconsume_times),
            "bornHost": self.born_host,
            "storeHost": self.store_host,
            "storeTimestamp": str(self.store_timestamp),
        }

    def decode(self, properties: dict[str, str]) -> None:
        if not properties:
            return
        text_fields = {
            "producerGroup": "producer_group",
            "topic": "topic",
            "defaultTopic": "default_topic",
            "properties": "properties",
            "bornHost": "born_host",
            "storeHost": "store_host",
        }
        int_fields = {
            "defaultTopicQueueNums": ("default_topic_queue_nums", 64),
            "queueId": ("queue_id", 64),
            "sysFlag": ("sys_flag", 64),
            "bornTimestamp": ("born_timestamp", 64),
            "flag": ("flag", 32),
            "reconsumeTimes": ("reconsume_times", 32),
            "storeTimestamp": ("store_timestamp", 64),
        }
        for key, attr in text_fields.items():
            if key in properties:
                setattr(self, attr, properties[key])
        for key, (attr, bits) in int_fields.items():
            if key in properties:
                setattr(self, attr, _parse_int(properties[key], bits))


@dataclass
class GetConsumerRunningInfoRequestHeader:
    consumer_group: str = ""
    client_id: str = ""
    jstack_enable: bool = False

    def encode(self) -> dict[str, str]:
        return {
            "clientId": self.client_id,
            "consumerGroup": self.consumer_group,
            "jstackEnable": _BOOL_TEXT[bool(self.jstack_enable)],
        }

    def decode(self, properties: dict[str, str]) -> None:
        if "clientId" in properties:
            self.client_id = properties["clientId"]
        if "consumerGroup" in properties:
            self.consumer_group = properties["consumerGroup"]
        if "jstackEnable" in properties:
            self.jstack_enable = _parse_bool(properties["jstackEnable"])