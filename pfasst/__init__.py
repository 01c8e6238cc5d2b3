"""
generic orchestration core for parallel-in-time solvers (SDC, MLSDC, PFASST)
"""

# scalar type used for times, step sizes and norms
time_precision = float
