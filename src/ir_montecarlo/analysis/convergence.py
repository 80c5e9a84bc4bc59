"""
Monte Carlo convergence diagnostics.

[T1] MC error converges at rate 1/√P: the standard error of a product
     value falls by √2 when the path count doubles.

Usage
-----
>>> table = convergence_analysis(ModelConfig(), curve, Bond(10.0), curve.discount_factor(10.0))
>>> estimate_convergence_rate(table)
-0.5...
"""

import logging
from dataclasses import replace
from typing import Optional, Sequence

import numpy as np
import pandas as pd

from ir_montecarlo.config.settings import ModelConfig
from ir_montecarlo.curves.yield_curve import DiscountCurveProvider
from ir_montecarlo.models.factory import create_simulation
from ir_montecarlo.products.base import Product

logger = logging.getLogger(__name__)


def convergence_analysis(
    config: ModelConfig,
    curve: DiscountCurveProvider,
    product: Product,
    benchmark: Optional[float] = None,
    path_counts: Sequence[int] = (1000, 2000, 5000, 10000),
    evaluation_time: float = 0.0,
) -> pd.DataFrame:
    """
    Value product for increasing path counts.

    Each row rebuilds the simulation from config with the given path count
    and the config's seed.

    Parameters
    ----------
    config : ModelConfig
        Model configuration; its n_paths is overridden per row
    curve : DiscountCurveProvider
        Initial curve
    product : Product
        Product to value
    benchmark : float, optional
        Reference value (analytic or high-path-count)
    path_counts : sequence of int
        Path counts to test
    evaluation_time : float, default 0.0

    Returns
    -------
    pd.DataFrame
        Columns: n_paths, value, standard_error, and when a benchmark is
        given: benchmark, absolute_error, within_ci
    """
    rows = []
    for n_paths in path_counts:
        row_config = replace(config, simulation=replace(config.simulation, n_paths=n_paths))
        simulation = create_simulation(row_config, curve)
        value = product.value(evaluation_time, simulation)

        row = {
            "n_paths": n_paths,
            "value": value.average(),
            "standard_error": value.standard_error(),
        }
        if benchmark is not None:
            lower, upper = value.confidence_interval()
            row["benchmark"] = benchmark
            row["absolute_error"] = abs(value.average() - benchmark)
            row["within_ci"] = lower <= benchmark <= upper
        rows.append(row)
        logger.info(
            f"{type(product).__name__} with {n_paths} paths: {row['value']:.6f} "
            f"± {row['standard_error']:.2e}"
        )

    return pd.DataFrame(rows)


def estimate_convergence_rate(table: pd.DataFrame, column: str = "standard_error") -> float:
    """
    Slope of log(error) against log(n_paths).

    [T1] Theory predicts -0.5.

    Parameters
    ----------
    table : pd.DataFrame
        Output of convergence_analysis
    column : str, default "standard_error"
        Error column to regress ("absolute_error" is noisier)

    Returns
    -------
    float
        Estimated convergence rate
    """
    if len(table) < 2:
        raise ValueError(f"CRITICAL: need at least 2 rows, got {len(table)}")
    log_n = np.log(table["n_paths"].to_numpy(dtype=float))
    log_error = np.log(table[column].to_numpy(dtype=float) + 1e-16)
    slope, _ = np.polyfit(log_n, log_error, 1)
    return float(slope)
