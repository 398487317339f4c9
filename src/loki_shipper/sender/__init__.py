"""HTTP transport module for pushing streams to Loki."""

from .http_sender import HTTPSender, SenderConfig, basic_auth_header, create_default_sender
from .models import PushRequest, PushStream, StreamLabels

__all__ = ["HTTPSender", "SenderConfig", "basic_auth_header", "create_default_sender", "PushRequest", "PushStream", "StreamLabels"]
