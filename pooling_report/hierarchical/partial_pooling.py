"""
Hierarchical (Partial Pooling) Contrasts
========================================

One Bayesian multilevel model fit jointly across all outcomes and
participants.

Model:
    post_z[i] ~ Normal(mu[i], sigma)
    mu[i] = X[i] . (beta + u_outcome[o[i]] + u_participant[p[i]])
    X = [1, pre_z, group[stable_a], group[stable_b]]

    beta[k] ~ Normal(0, 2.5)
    u_outcome, u_participant ~ MvNormal(0, Sigma_g), Sigma_g from an
        LKJ Cholesky factor with HalfCauchy(0, 2.5) standard deviations
    sigma ~ HalfStudentT(3, 2.5)

Outcome deviations share one prior distribution, so outcomes with noisy
data are pulled toward the population-average effect.

Per-outcome contrasts are computed draw by draw (fixed + outcome deviation,
then weighted) and only then reduced to a posterior mean and 2.5/97.5
percentile interval.

Output:
    results/hierarchical_contrasts.csv
    results/population_contrasts.csv
    results/hierarchical_diagnostics.csv

Usage:
    from pooling_report.hierarchical import run_hierarchical
    contrasts, population, idata = run_hierarchical(standardized)

Author: Research Team
Date: 2025-12
"""

from __future__ import annotations

import warnings
from typing import Optional

import numpy as np
import pandas as pd
import pymc as pm
import arviz as az

from pooling_report.preprocessing.constants import (
    FIXED_EFFECT_PRIOR_SD,
    HIERARCHICAL,
    LKJ_ETA,
    OUTCOME_NAMES,
    RANDOM_SD_PRIOR_SCALE,
    RESIDUAL_PRIOR_NU,
    RESIDUAL_PRIOR_SCALE,
    RHAT_WARN,
)
from ._utils import (
    COEF_NAMES,
    SamplerConfig,
    coefficient_contrast_weights,
    design_matrix,
    ordered_levels,
    summarize_draws,
)

GROUPINGS = ["outcome", "participant"]


# =============================================================================
# MODEL
# =============================================================================

def _correlated_deviations(grouping: str):
    """Non-centered deviations with a full covariance among coefficients."""
    n_coef = len(COEF_NAMES)
    chol, _, _ = pm.LKJCholeskyCov(
        f"chol_{grouping}",
        n=n_coef,
        eta=LKJ_ETA,
        sd_dist=pm.HalfCauchy.dist(beta=RANDOM_SD_PRIOR_SCALE, shape=n_coef),
        compute_corr=True,
    )
    z = pm.Normal(f"z_{grouping}", 0.0, 1.0, dims=(grouping, "coef"))
    return pm.Deterministic(f"u_{grouping}", pm.math.dot(z, chol.T), dims=(grouping, "coef"))


def build_hierarchical_model(standardized: pd.DataFrame) -> pm.Model:
    """
    Build the joint multilevel model over every outcome and participant.

    Parameters
    ----------
    standardized : pd.DataFrame
        Stacked standardized rows (outcome, participant, group, pre_z, post_z).

    Returns
    -------
    pm.Model
        Model with coords ``coef``, ``outcome``, ``participant``, ``obs``.
    """
    data = standardized.dropna(subset=["pre_z", "post_z"]).reset_index(drop=True)

    outcome_names = ordered_levels(data["outcome"], OUTCOME_NAMES)
    outcome_idx = data["outcome"].astype(str).map(
        {name: i for i, name in enumerate(outcome_names)}
    ).to_numpy(dtype="int64")
    participant_idx, participant_ids = pd.factorize(data["participant"], sort=True)

    X = design_matrix(data)
    y = data["post_z"].to_numpy(dtype=float)

    coords = {
        "coef": COEF_NAMES,
        "outcome": outcome_names,
        "participant": [str(p) for p in participant_ids],
        "obs": np.arange(len(data)),
    }

    with pm.Model(coords=coords) as model:
        beta = pm.Normal("beta", mu=0.0, sigma=FIXED_EFFECT_PRIOR_SD, dims="coef")
        u_outcome = _correlated_deviations("outcome")
        u_participant = _correlated_deviations("participant")
        sigma = pm.HalfStudentT("sigma", nu=RESIDUAL_PRIOR_NU, sigma=RESIDUAL_PRIOR_SCALE)

        coefs = beta + u_outcome[outcome_idx] + u_participant[participant_idx]
        mu = pm.math.sum(coefs * X, axis=1)
        pm.Normal("post_z", mu=mu, sigma=sigma, observed=y, dims="obs")

    return model


def sample_posterior(
    model: pm.Model,
    config: Optional[SamplerConfig] = None,
    verbose: bool = True,
) -> az.InferenceData:
    """Run NUTS; chains are pooled downstream, warmup is discarded."""
    config = config or SamplerConfig()
    with model:
        idata = pm.sample(
            draws=config.draws,
            tune=config.tune,
            chains=config.chains,
            cores=config.cores,
            target_accept=config.target_accept,
            random_seed=config.random_seed,
            progressbar=verbose,
            return_inferencedata=True,
        )
    return idata


# =============================================================================
# CONTRASTS FROM DRAWS
# =============================================================================

def _pooled(posterior, var_name: str, dims: list[str]) -> np.ndarray:
    """Stack chains x draws into one leading sample axis."""
    arr = posterior[var_name].transpose("chain", "draw", *dims).values
    return arr.reshape((-1,) + arr.shape[2:])


def outcome_contrast_draws(posterior) -> pd.DataFrame:
    """
    Per-draw contrast for every outcome.

    For each retained draw the outcome's coefficients are the fixed effects
    plus that outcome's deviation; the contrast weights are applied to those
    coefficients before any summarizing.

    Parameters
    ----------
    posterior : xarray.Dataset
        ``idata.posterior`` with ``beta`` (coef) and ``u_outcome``
        (outcome, coef).

    Returns
    -------
    pd.DataFrame
        Long table: draw, outcome, contrast, value.
    """
    coef_names = [str(c) for c in posterior["beta"].coords["coef"].values]
    outcome_names = [str(o) for o in posterior["u_outcome"].coords["outcome"].values]
    weights = coefficient_contrast_weights(coef_names)

    beta = _pooled(posterior, "beta", ["coef"])                    # (S, K)
    u = _pooled(posterior, "u_outcome", ["outcome", "coef"])      # (S, O, K)
    draws = (beta[:, None, :] + u) @ weights.values.T              # (S, O, C)

    n_draws = draws.shape[0]
    frames = []
    for j, outcome in enumerate(outcome_names):
        for c, contrast in enumerate(weights.index):
            frames.append(pd.DataFrame({
                "draw": np.arange(n_draws),
                "outcome": outcome,
                "contrast": contrast,
                "value": draws[:, j, c],
            }))
    return pd.concat(frames, ignore_index=True)


def population_contrast_draws(posterior) -> pd.DataFrame:
    """Per-draw contrast of the fixed effects alone (population average)."""
    coef_names = [str(c) for c in posterior["beta"].coords["coef"].values]
    weights = coefficient_contrast_weights(coef_names)
    draws = _pooled(posterior, "beta", ["coef"]) @ weights.values.T    # (S, C)

    return pd.concat(
        [
            pd.DataFrame({
                "draw": np.arange(draws.shape[0]),
                "contrast": contrast,
                "value": draws[:, c],
            })
            for c, contrast in enumerate(weights.index)
        ],
        ignore_index=True,
    )


def summarize_contrast_draws(draws: pd.DataFrame, by: list[str]) -> pd.DataFrame:
    """Reduce per-draw contrasts to mean and percentile interval."""
    rows = []
    for keys, frame in draws.groupby(by, sort=False):
        keys = keys if isinstance(keys, tuple) else (keys,)
        rows.append({**dict(zip(by, keys)), **summarize_draws(frame["value"].to_numpy())})
    return pd.DataFrame(rows)


def outcome_contrasts(posterior) -> pd.DataFrame:
    """Per-outcome contrast table tagged as hierarchical."""
    summary = summarize_contrast_draws(outcome_contrast_draws(posterior), ["contrast", "outcome"])
    summary.insert(0, "model", HIERARCHICAL)
    return summary


def population_contrasts(posterior) -> pd.DataFrame:
    """Population-average contrast table (fixed effects only)."""
    summary = summarize_contrast_draws(population_contrast_draws(posterior), ["contrast"])
    summary.insert(0, "model", HIERARCHICAL)
    return summary


# =============================================================================
# DIAGNOSTICS
# =============================================================================

def sampler_diagnostics(idata: az.InferenceData) -> pd.DataFrame:
    """
    Posterior summary (r_hat, ESS) for fixed effects and deviation SDs.

    Accepts InferenceData or a posterior Dataset. Emits a warning when any
    r_hat exceeds RHAT_WARN.
    """
    var_names = ["beta", "sigma"] + [f"chol_{g}_stds" for g in GROUPINGS]
    summary = az.summary(idata, var_names=var_names)
    summary = summary.reset_index().rename(columns={"index": "parameter"})

    if "r_hat" in summary.columns:
        bad = summary[summary["r_hat"] > RHAT_WARN]
        if len(bad):
            warnings.warn(
                f"r_hat > {RHAT_WARN} for {len(bad)} parameters: "
                f"{bad['parameter'].tolist()}. Consider more draws or tuning."
            )
    return summary


# =============================================================================
# RUNNER
# =============================================================================

def run_hierarchical(
    standardized: pd.DataFrame,
    config: Optional[SamplerConfig] = None,
    verbose: bool = True,
) -> tuple[pd.DataFrame, pd.DataFrame, az.InferenceData]:
    """
    Fit the joint model and derive per-outcome and population contrasts.

    Returns
    -------
    tuple
        (outcome contrasts, population contrasts, InferenceData)
    """
    config = config or SamplerConfig()
    model = build_hierarchical_model(standardized)

    if verbose:
        n_obs = len(model.coords["obs"])
        n_out = len(model.coords["outcome"])
        n_par = len(model.coords["participant"])
        print(
            f"  Fitting hierarchical model on N={n_obs} obs, "
            f"{n_out} outcomes, {n_par} participants "
            f"({config.chains} chains x {config.draws} draws, tune={config.tune})..."
        )

    idata = sample_posterior(model, config, verbose=verbose)

    contrasts = outcome_contrasts(idata.posterior)
    fitted = standardized.dropna(subset=["pre_z", "post_z"])
    n_by_outcome = fitted.groupby(fitted["outcome"].astype(str)).size()
    contrasts["n"] = contrasts["outcome"].map(n_by_outcome).astype("Int64")
    population = population_contrasts(idata.posterior)

    if verbose:
        for row in contrasts.itertuples():
            print(f"    {row.outcome} {row.contrast}: {row.estimate:.3f} [{row.lower:.3f}, {row.upper:.3f}]")
        for row in population.itertuples():
            print(f"    Population {row.contrast}: {row.estimate:.3f} [{row.lower:.3f}, {row.upper:.3f}]")

    return contrasts, population, idata
