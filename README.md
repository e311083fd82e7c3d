# uwsgate

Building blocks for an event-driven HTTP and WebSocket server. It is plain
Python and uses only the standard library.

## Modules

### `uwsgate.message_parser`

`parse_headers(buffer)` reads a header block that ends with an empty line, as
used in HTTP requests and multipart parts. It returns a `HeaderBlock`. Its
`headers` field is a tuple of `(name, value)` byte pairs, and its `length`
field is the number of bytes the block took up. Each name byte is OR-ed with
`0x20`, which lower-cases ASCII letters. Values are returned as they appear.
The function returns `None` when the block is incomplete or malformed, and
also when it has more than `MAX_HEADERS` (10) headers.

### `uwsgate.permessage_deflate`

- `CompressOptions` is an `IntFlag`. Its low byte describes the compressor and
  bits 8 to 11 describe the decompressor window.
- `DeflationStream(options)` needs options for a dedicated compressor.
  `deflate(raw, reset)` returns the compressed message without the
  sync-flush tail. It raises `ValueError` on empty input.
- `InflationStream(options)` needs options for a dedicated decompressor.
  `inflate(compressed, max_payload_length, reset)` adds the tail back and
  decompresses. It raises `InflationError` when the data is corrupt or the
  result is longer than `max_payload_length`.

Invalid options raise `ValueError` in both constructors.

```python
from uwsgate.permessage_deflate import CompressOptions, DeflationStream, InflationStream

deflater = DeflationStream(CompressOptions.DEDICATED_COMPRESSOR)
inflater = InflationStream(CompressOptions.DEDICATED_DECOMPRESSOR)
assert inflater.inflate(deflater.deflate(b"hello", False), 1024, False) == b"hello"
```

### `uwsgate.loop`

`Loop.get()` returns the loop for the current thread and creates it on first
use. A `Loop` provides:

- `defer(callback)`: queue a callback from any thread.
- `wakeup()`: run the callbacks queued so far and return how many ran.
- `add_pre_handler` / `remove_pre_handler` and `add_post_handler` /
  `remove_post_handler`: handlers keyed by any hashable. Adding a key that is
  already present keeps the existing handler.
- `iterate()`: one pass. It refreshes the cached date once a second, runs the
  pre handlers, runs any pending wakeup, then runs the post handlers. It
  raises `RuntimeError` if `corked_socket` is still set at the end.
- `run()`: iterate until no deferred work remains.
- `update_date(timestamp)`: refresh `date` and return it.
- `set_silent(silent)`: set `no_mark`.
- `free()`: release the loop, so the next `get()` on that thread creates a new one.

`format_http_date(timestamp)` formats a Unix timestamp as an HTTP `Date`
value, for example `Thu, 01 Jan 1970 00:00:00 GMT`.

### `uwsgate.http_router`

`HttpRouter` keeps a tree of routes. Pattern segments can be:

- static, such as `/users`;
- parameters, such as `:id`, which match any non-empty segment;
- wildcards, written `*`.

The routes are added and used like this:

- `add(methods, pattern, handler, priority)` registers a handler. The
  priority is `HIGH_PRIORITY`, `MEDIUM_PRIORITY` (the default) or
  `LOW_PRIORITY`. A route with the same pattern and priority for the first
  method is replaced.
- `route(method, url)` calls matching handlers in turn until one returns a
  true value. Routes registered for the method `*` are tried last. It returns
  whether any handler accepted the request.
- `remove(method, pattern, priority)` removes a handler from every route it
  serves. It returns `False` if the handler was not found.
- Inside a handler, `parameters()` returns the captured segments, and
  `user_data` holds whatever the caller stored on the router.

`parameter_offsets(pattern)` maps each `:name` in a pattern to its index.

```python
from uwsgate.http_router import HttpRouter
from uwsgate.message_parser import parse_headers

router = HttpRouter()
router.add(["GET"], "/users/:id", lambda r: print("user", r.parameters()) or True)
router.route("GET", "/users/42")          # prints: user ('42',)

block = parse_headers(b"Host: example.com\r\nAccept: */*\r\n\r\n")
print(block.headers, block.length)
```

### `uwsgate.response_data`

`ResponseState` holds the flags of a response in progress: `STATUS_CALLED`,
`WRITE_CALLED`, `END_CALLED`, `RESPONSE_PENDING` and `CONNECTION_CLOSE`.

`HttpResponseData` holds the `on_writable`, `on_aborted` and `in_stream`
handlers, the write `offset`, and the `state` flags.

- `mark_done()` drops the handlers and clears `RESPONSE_PENDING`.
- `call_on_writable(offset)` runs the writable handler. It restores the
  handler afterwards unless the handler cleared it. It raises `RuntimeError`
  if no handler is attached.

### `uwsgate.topic_tree`

`TopicTree(callback)` manages subscribers and topics:

- `create_subscriber()` makes a new subscriber.
- `subscribe(subscriber, topic)` and `unsubscribe(subscriber, topic)` join
  and leave topics. `unsubscribe` returns `(ok, last, new_count)`.
- `free_subscriber(subscriber)` removes a subscriber entirely.
- `lookup_topic(topic)` returns the topic, or `None` if it does not exist.

Messages are sent as follows:

- `publish(sender, topic, message)` buffers a message for every subscriber
  except the sender.
- `drain(subscriber=None)` delivers the buffered messages through the
  callback as `(subscriber, message, IteratorFlags)`. If the callback returns
  a true value, the rest of that subscriber's drain is skipped.
- A subscriber is drained on its own once it holds 32 undelivered messages.
- `publish_big(sender, topic, message, callback)` bypasses the buffer and
  hands the message straight to each subscriber.

A subscriber may not subscribe or unsubscribe while it is set as
`iterating_subscriber`. Doing so raises `RuntimeError`.

```python
from uwsgate.topic_tree import TopicTree

tree = TopicTree(lambda sub, msg, flags: print(sub.user, msg) or False)
alice = tree.create_subscriber()
alice.user = "alice"
tree.subscribe(alice, "news")
tree.publish(None, "news", "hello")
tree.drain()                               # prints: alice hello
```

## What this package does not do

It opens no sockets and runs no server. It has no HTTP request parser beyond
header blocks, no response writer and no WebSocket frame codec. It offers no
command-line program. The pieces above are meant to be wired into your own
network layer.

## Tests

```
pip install -e .[test]
pytest
```