"""Core (UI-agnostic) report logic.

This package contains:
- report catalogue and per-report column rules
- CSV fetch/parse and type inference (text -> records)
- view normalization (filters, search, sort, paging)
- page compute functions (JSON-serializable payloads)
- PDF export through a pluggable sink
"""
