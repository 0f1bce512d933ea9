from __future__ import annotations

import numpy as np

from ._validation import ConfigurationError


def make_folds(
    total: int,
    k: int = 10,
    target: int | None = None,
    rng: np.random.Generator | int | None = None,
) -> list[np.ndarray]:
    """
    Generate k-fold training index sets over ``range(total)``.

    The indices are shuffled and split into ``k`` disjoint, near-equal groups.
    Fold i holds every index *except* group i, i.e. the rows (or columns) a
    fold is trained on; group i is its held-out set.

    Parameters
    ----------
    total : int
        Number of rows or columns to partition.
    k : int
        Number of folds. ``k == 1`` means "use every index in every fold".
    target : int, optional
        Number of folds the result must pair with. Defaults to ``k``. With
        ``k == 1`` the single all-index fold is repeated ``target`` times.
    rng : Generator, int or None
        Source of the shuffle.

    Returns
    -------
    list of np.ndarray
        ``target`` sorted integer index arrays.

    Raises
    ------
    ConfigurationError
        If ``k`` is neither 1 nor ``target``, or exceeds ``total``.
    """
    if target is None:
        target = k
    if k < 1 or target < 1:
        raise ConfigurationError(f"Fold counts must be positive, got k={k}, target={target}.")
    if k == 1:
        return [np.arange(total) for _ in range(target)]
    if k != target:
        raise ConfigurationError(
            f"Cannot pair {k} folds with {target} folds. "
            f"Use the same fold count along both dimensions, or 1."
        )
    if k > total:
        raise ConfigurationError(
            f"Cannot split {total} indices into {k} folds. Try k <= {total}."
        )

    rng = np.random.default_rng(rng)
    groups = np.array_split(rng.permutation(total), k)
    everything = np.arange(total)
    return [np.setdiff1d(everything, held_out) for held_out in groups]
