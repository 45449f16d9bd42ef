"""LLM client, request builder and response decoders for nano-jarvis."""

from nano_jarvis.llm.client import AsyncChatClient
from nano_jarvis.llm.request import build_request
from nano_jarvis.llm.response_parser import StreamDecoder, decode_buffered, parse_data_line
from nano_jarvis.llm.sink import FragmentCollector, FragmentSink, Observer, deliver

__all__ = [
    "AsyncChatClient",
    "FragmentCollector",
    "FragmentSink",
    "Observer",
    "StreamDecoder",
    "build_request",
    "decode_buffered",
    "deliver",
    "parse_data_line",
]
