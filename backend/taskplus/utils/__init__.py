"""Utility modules"""
from .logger import get_logger, setup_logging
from .jwt import SessionTokenService, create_session_token, decode_session_token
from .idgen import generate_id, generate_correlation_id
from .time import utc_now, storage_now, format_iso, parse_iso

__all__ = [
    "get_logger",
    "setup_logging",
    "SessionTokenService",
    "create_session_token",
    "decode_session_token",
    "generate_id",
    "generate_correlation_id",
    "utc_now",
    "storage_now",
    "format_iso",
    "parse_iso",
]
