# eidetic/ingestion/__init__.py
"""
Ingestion: hashing, snapshot diffing, chunking and the index executor.

Flow: scan → snapshot → diff → split changed files → embed → upsert → save snapshot.

Library documentation is cached separately via documents.index_document.
"""
