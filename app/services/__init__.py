"""
Postboard Services Package.

- metrics: per-endpoint request counters and the periodic performance report
"""
