from typing import Any, Callable, Iterable, List, Sequence

import numpy as np
from joblib import Parallel, delayed
from tqdm import tqdm


def spawn_seeds(n: int, seed: int | None = None) -> np.ndarray:
    """Draw ``n`` distinct integer seeds from a master generator."""
    rng = np.random.default_rng(seed)
    max_seed = np.iinfo(np.int32).max
    if n > max_seed:
        raise ValueError(f"Number of tasks {n} exceeds available unique seeds")
    return rng.choice(max_seed, size=n, replace=False)


def map_grid(
    fn: Callable[..., Any],
    cells: Sequence[dict],
    parallel: bool = False,
    n_jobs: int = -1,
    progress: bool = False,
    prefer: str | None = None,
    desc: str = "ctasval",
) -> List[Any]:
    """Apply ``fn(**cell)`` to every cell and return results in cell order.

    With ``parallel=False`` cells run one after the other in the calling
    process. Otherwise they are dispatched to a joblib pool; the first
    exception raised by any cell propagates to the caller.
    """
    bar: Iterable[dict] = tqdm(cells, total=len(cells), desc=desc, disable=not progress)
    if not parallel:
        return [fn(**cell) for cell in bar]
    return Parallel(n_jobs=n_jobs, prefer=prefer)(delayed(fn)(**cell) for cell in bar)
