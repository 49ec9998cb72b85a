"""
CSV import package.

Responsibilities:
- Validate teacher and student exports row by row.
- Normalize them into the tables the snapshot store reads.
- Upsert the cleaned rows into the processed data directory.
"""
