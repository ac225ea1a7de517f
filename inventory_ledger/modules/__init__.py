"""
Presentation adapters over Snapshot data: Qt table models per screen and the
read-only reporting views/exports.
"""
