# rmqkit

Client-side pieces for talking to a message-queue cluster's name servers and
brokers from Python. It uses nothing outside the standard library.

## What is inside

- `rmqkit.codec`: the `RemotingCommand` frame with a JSON and a compact
  binary header codec (`CodecType.JSON`, `CodecType.ROCKETMQ`), plus
  `encode`, `decode`, `RemotingCommand.create` and `LanguageCode`.
- `rmqkit.headers`: request header dataclasses with `encode()` and, where
  the protocol needs it, `decode(properties)`; `RequestCode` lists the
  request codes.
- `rmqkit.responses`: `ResponseCode`, `SendMessageResponse` and
  `PullMessageResponse`.
- `rmqkit.remoting`: `RemotingClient` with `invoke_sync`, `invoke_async`
  and `invoke_oneway` over shared TCP connections, handlers for requests a
  server sends (`register_request_func`), `RPCHook` for observing traffic,
  `TcpOption` for socket timeouts, and `iter_frames` for splitting a byte
  stream into frames.
- `rmqkit.future`: `ResponseFuture`, the pending result of one request, and
  `RequestTimeoutError`.
- `rmqkit.reply_future`: `RequestResponseFuture` and
  `RequestResponseFutureTable` for matching reply messages to requests by
  correlation id, with expiry.
- Utilities: `compression` (zlib, levels 1 to 9), `namespace`, `mixall`
  (well-known names and a properties-text parser), `uniqueset`, `files`
  (atomic replace with a `.bak` copy), `netutil` (local IPv4 address),
  `text`, `validators` (`validate_group`).

## Install

```
pip install .
```

## Examples

Encode a command and read it back from a byte stream:

```python
import io

from rmqkit.codec import CodecType, RemotingCommand, decode, encode
from rmqkit.headers import GetRouteInfoRequestHeader, RequestCode
from rmqkit.remoting import iter_frames

cmd = RemotingCommand.create(
    RequestCode.GET_ROUTE_INFO_BY_TOPIC,
    GetRouteInfoRequestHeader(topic="orders"),
    b"",
)
frame = encode(cmd, CodecType.ROCKETMQ)
same = decode(frame[4:])
assert same.ext_fields == {"topic": "orders"}

(only,) = iter_frames(io.BytesIO(frame))
assert decode(only).opaque == cmd.opaque
```

Send a request to a server (timeouts are in seconds):

```python
from rmqkit.remoting import RemotingClient

with RemotingClient(codec=CodecType.ROCKETMQ) as client:
    response = client.invoke_sync("127.0.0.1:9876", cmd, timeout=6)
    print(response.code, response.remark)
```

Wait for a reply message by correlation id:

```python
from rmqkit.reply_future import RequestResponseFuture, RequestResponseFutureTable

table = RequestResponseFutureTable()
future = RequestResponseFuture("corr-1", timeout=3.0)
table.add(future)
assert table.set_response("corr-1", "reply")
assert future.wait_response_message("orders") == "reply"
```

Compression, namespaces and group names:

```python
from rmqkit.compression import compress, uncompress
from rmqkit.namespace import wrap_namespace, without_namespace
from rmqkit.validators import validate_group

assert uncompress(compress(b"payload", 5)) == b"payload"
assert wrap_namespace("ns", "topic") == "ns%topic"
assert without_namespace("ns%topic") == "topic"
validate_group("my_group")  # raises ValidationError when invalid
```

## What it does not do

rmqkit provides the wire format and transport, not a full client. It does
not look up or cache topic routes from name servers, does not choose
brokers or message queues, does not send message traces, and has no
producer, consumer or command-line tool. Callers build those on top of
`RemotingClient` and the header classes.

## Tests

```
pip install .[test]
pytest
```