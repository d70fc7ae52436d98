"""Core (UI-agnostic) orders dashboard logic.

This package contains:
- data loading (orders JSON -> pandas)
- filter normalization and the period/site filter
- page compute functions (JSON-serializable payloads)
- chart helpers (Altair -> Vega-Lite spec dict)
- display formatting (it-IT currency, dates, status labels)
"""
