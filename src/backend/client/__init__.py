"""
Python client for the FruitsAI chat endpoint.

Usage:
    from client import SimpleChatClient

    async with SimpleChatClient("http://127.0.0.1:8000/api/chat") as chat:
        reply = await chat.send_message("List the files in /tmp")
"""

from .chat import ChatClientError, ChatStatus, SimpleChatClient

__all__ = ["ChatClientError", "ChatStatus", "SimpleChatClient"]
