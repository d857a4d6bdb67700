"""
Benchmark result records and their Parquet persistence.
"""
