"""
Session Module - Black Box Interface

Purpose: Keep an observational record of issued tokens
Interface: create_session(), get_session(), end_session(), list_sessions()
Hidden: Record layout, TTL management

Replaceable with any session backend (database, in-memory, distributed cache).
"""

from .session import SessionModule

__all__ = ["SessionModule"]
