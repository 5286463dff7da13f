"""License & permit inventory: ingestion and analytics.

This package contains:
- upload decoding (CSV / XLSX / XLS / JSON -> rows)
- header mapping, validation and normalization into InventoryRecord
- department resolution against the canonical roster
- filter normalization and pure aggregation views (JSON-serializable payloads)
- chart helpers (Altair -> Vega-Lite spec dict)
"""
