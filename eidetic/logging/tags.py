# eidetic/logging/tags.py
"""Subsystem tags prefixed to log messages, e.g. f"{CHUNKING} Split {path}"."""

CHUNKING = "[CHUNKING]"
INGEST = "[INGEST]"
STATE = "[STATE]"
RETRIEVER = "[RETRIEVER]"
EMBEDDING = "[EMBEDDING]"
VECTOR_DB = "[VECTOR_DB]"
MEMORY = "[MEMORY]"

__all__ = ["CHUNKING", "INGEST", "STATE", "RETRIEVER", "EMBEDDING", "VECTOR_DB", "MEMORY"]
