"""Result fusion for hybrid search.

Contents
- ``fusion``: boosted-average fusion and per-index hit merging
"""
