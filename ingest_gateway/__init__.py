"""
Ingestion gateway: normalizes YAML/JSON payloads into documents and writes
them to a search/document store.
"""
