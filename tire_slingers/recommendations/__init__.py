"""
Stock recommendation engine: turns inventory plus demand signals into
per-size stock/purge/hold recommendations with human-readable reasons.

Modules
-------
aggregator : EngineInputs + gather_inputs(); DB reads grouped by size key.
metrics    : SizeMetrics + build_size_metrics(); pure.
classifier : classify_size() + demand rates, action, priority, reasons; pure.
allocator  : apply_capacity_limits(); greedy capacity rationing, in place.
engine     : compute / save / refresh / read entry points.
reporter   : write_recommendation_csv() + write_recommendation_json().
"""
