"""Header parsing, permessage-deflate, loop state, routing, response state and pub/sub."""

__version__ = "0.1.0"

__all__ = [
    "message_parser",
    "permessage_deflate",
    "loop",
    "http_router",
    "response_data",
    "topic_tree",
]