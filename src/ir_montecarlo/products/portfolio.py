"""
Concurrent valuation of many products on one simulation.

The simulation is immutable after its build, so products are valued in a
thread pool without locking. numpy releases the GIL in the vectorized
kernels that dominate each valuation.
"""

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Optional, Sequence

import pandas as pd

from ir_montecarlo.config.settings import SETTINGS
from ir_montecarlo.products.base import Product
from ir_montecarlo.simulation.cache import MonteCarloSimulation
from ir_montecarlo.simulation.random_variable import RandomVariable

logger = logging.getLogger(__name__)


def value_products(
    products: Sequence[Product],
    simulation: MonteCarloSimulation,
    evaluation_time: float = 0.0,
    max_workers: Optional[int] = None,
) -> list[RandomVariable]:
    """
    Value products concurrently.

    Parameters
    ----------
    products : sequence of Product
        Products to value
    simulation : MonteCarloSimulation
        Shared read-only simulation
    evaluation_time : float, default 0.0
    max_workers : int, optional
        Thread pool size (default: SETTINGS.valuation.max_workers, where
        None is the executor default)

    Returns
    -------
    list of RandomVariable
        Values in the order of products

    Raises
    ------
    Exception
        The first valuation error, after logging which product failed
    """
    results: list[Optional[RandomVariable]] = [None] * len(products)
    if not products:
        return []
    if max_workers is None:
        max_workers = SETTINGS.valuation.max_workers

    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        future_to_index = {
            executor.submit(product.value, evaluation_time, simulation): index
            for index, product in enumerate(products)
        }
        for future in as_completed(future_to_index):
            index = future_to_index[future]
            try:
                results[index] = future.result()
            except Exception as e:
                logger.warning(f"Valuation failed for {products[index]!r}: {e}")
                raise

    logger.info(
        f"Valued {len(products)} products at t={evaluation_time} (max_workers={max_workers})"
    )
    return results  # type: ignore[return-value]


def valuation_summary(
    products: Sequence[Product],
    simulation: MonteCarloSimulation,
    evaluation_time: float = 0.0,
    max_workers: Optional[int] = None,
) -> pd.DataFrame:
    """
    Value products concurrently and tabulate the statistics.

    Returns
    -------
    pd.DataFrame
        Columns: product, value, standard_error, ci_lower, ci_upper
    """
    values = value_products(products, simulation, evaluation_time, max_workers)
    rows = []
    for product, value in zip(products, values):
        lower, upper = value.confidence_interval()
        rows.append(
            {
                "product": type(product).__name__,
                "value": value.average(),
                "standard_error": value.standard_error(),
                "ci_lower": lower,
                "ci_upper": upper,
            }
        )
    return pd.DataFrame(rows)
