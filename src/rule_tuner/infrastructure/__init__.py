"""
Infrastructure Layer

Storage backends for rule-set artifacts, snapshots, and run records.
"""
