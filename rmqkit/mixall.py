"""Well-known names and helpers shared across the client."""

import logging
import socket

logger = logging.getLogger(__name__)

ROCKETMQ_HOME_ENV = "ROCKETMQ_HOME"
ROCKETMQ_HOME_PROPERTY = "rocketmq.home.dir"
NAMESRV_ADDR_ENV = "NAMESRV_ADDR"
NAMESRV_ADDR_PROPERTY = "rocketmq.namesrv.addr"
MESSAGE_COMPRESS_LEVEL = "rocketmq.message.compressLevel"
DEFAULT_NAMESRV_ADDR_LOOKUP = "jmenv.tbsite.net"
DEFAULT_TOPIC = "TBW102"
BENCHMARK_TOPIC = "BenchmarkTest"
DEFAULT_PRODUCER_GROUP = "DEFAULT_PRODUCER"
DEFAULT_CONSUMER_GROUP = "DEFAULT_CONSUMER"
TOOLS_CONSUMER_GROUP = "TOOLS_CONSUMER"
FILTERSRV_CONSUMER_GROUP = "FILTERSRV_CONSUMER"
MONITOR_CONSUMER_GROUP = "__MONITOR_CONSUMER"
CLIENT_INNER_PRODUCER_GROUP = "CLIENT_INNER_PRODUCER"
SELF_TEST_PRODUCER_GROUP = "SELF_TEST_P_GROUP"
SELF_TEST_CONSUMER_GROUP = "SELF_TEST_C_GROUP"
SELF_TEST_TOPIC = "SELF_TEST_TOPIC"
OFFSET_MOVED_EVENT = "OFFSET_MOVED_EVENT"
ONS_HTTP_PROXY_GROUP = "CID_ONS-HTTP-PROXY"
CID_ONSAPI_PERMISSION_GROUP = "CID_ONSAPI_PERMISSION"
CID_ONSAPI_OWNER_GROUP = "CID_ONSAPI_OWNER"
CID_ONSAPI_PULL_GROUP = "CID_ONSAPI_PULL"
CID_RMQ_SYS_PREFIX = "CID_RMQ_SYS_"
DEFAULT_CHARSET = "UTF-8"
MASTER_ID = 0
RETRY_GROUP_TOPIC_PREFIX = "%RETRY%"
DLQ_GROUP_TOPIC_PREFIX = "%DLQ%"
SYSTEM_TOPIC_PREFIX = "rmq_sys_"
UNIQUE_MSG_QUERY_FLAG = "_UNIQUE_KEY_QUERY"
DEFAULT_TRACE_REGION_ID = "DefaultRegion"
CONSUME_CONTEXT_TYPE = "ConsumeContextType"


def get_retry_topic(consumer_group: str) -> str:
    """Name of the retry topic for a consumer group."""
    return RETRY_GROUP_TOPIC_PREFIX + consumer_group


def get_dlq_topic(consumer_group: str) -> str:
    """Name of the dead-letter topic for a consumer group."""
    return DLQ_GROUP_TOPIC_PREFIX + consumer_group


def broker_vip_channel(is_change: bool, broker_addr: str) -> str:
    """Return the broker's VIP channel address (port minus two) when ``is_change`` is set."""
    if not is_change:
        return broker_addr
    host, sep, port_text = broker_addr.partition(":")
    if not sep:
        raise ValueError(f"broker address {broker_addr!r} has no port")
    port_text = port_text.split(":", 1)[0]
    try:
        port = int(port_text)
    except ValueError:
        port = 0
    return f"{host}:{port - 2}"


def is_sys_consumer_group(consumer_group: str) -> bool:
    """True for consumer groups reserved by the system."""
    return consumer_group.startswith(CID_RMQ_SYS_PREFIX)


def is_system_topic(topic: str) -> bool:
    """True for topics reserved by the system."""
    return topic.startswith(SYSTEM_TOPIC_PREFIX)


def localhost_name() -> str:
    """The host name of this machine, or an empty string if it cannot be read."""
    try:
        return socket.gethostname()
    except OSError as exc:
        logger.warning("failed to read host name: %s", exc)
        return ""


def string_to_properties(text: str) -> dict[str, str]:
    """Parse ``key=value`` (or ``key:value``) lines, skipping blanks and ``#`` comments."""
    properties: dict[str, str] = {}
    for raw_line in text.split("\n"):
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        index = line.find("=")
        if index == -1:
            index = line.find(":")
        if index != -1:
            properties[line[:index].strip()] = line[index + 1:].strip()
    return properties