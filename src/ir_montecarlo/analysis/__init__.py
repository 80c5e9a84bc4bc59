"""
Diagnostics over simulations.
"""

from ir_montecarlo.analysis.convergence import convergence_analysis, estimate_convergence_rate

__all__ = ["convergence_analysis", "estimate_convergence_rate"]
