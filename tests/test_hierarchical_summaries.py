"""Posterior post-processing and model construction, no sampling."""

import warnings

import numpy as np
import pytest
import xarray as xr

from pooling_report.preprocessing import CONTRASTS, HIERARCHICAL, OUTCOME_NAMES
from pooling_report.hierarchical import (
    COEF_NAMES,
    build_hierarchical_model,
    coefficient_contrast_weights,
    design_matrix,
    outcome_contrast_draws,
    outcome_contrasts,
    population_contrasts,
    sampler_diagnostics,
    summarize_draws,
)


def make_posterior(beta, u_outcome, outcomes):
    """Posterior dataset shaped like pymc output: (chain, draw, ...)."""
    return xr.Dataset(
        {
            "beta": (("chain", "draw", "coef"), beta),
            "u_outcome": (("chain", "draw", "outcome", "coef"), u_outcome),
        },
        coords={"coef": COEF_NAMES, "outcome": outcomes},
    )


@pytest.fixture
def random_posterior():
    rng = np.random.default_rng(3)
    outcomes = OUTCOME_NAMES[:3]
    beta = rng.normal(0.2, 0.3, size=(2, 500, len(COEF_NAMES)))
    u = rng.normal(0.0, 0.4, size=(2, 500, len(outcomes), len(COEF_NAMES)))
    return make_posterior(beta, u, outcomes), beta, u


def test_coef_names_follow_treatment_coding():
    assert COEF_NAMES == ["Intercept", "pre_z", "group[stable_a]", "group[stable_b]"]


def test_design_matrix_columns(standardized):
    X = design_matrix(standardized)
    assert X.shape == (len(standardized), len(COEF_NAMES))
    assert (X[:, 0] == 1).all()
    np.testing.assert_allclose(X[:, 1], standardized["pre_z"])
    group = standardized["group"].astype(str).to_numpy()
    assert (X[group == "unstable", 2:] == 0).all()
    assert (X[group == "stable_b", 3] == 1).all()


def test_contrast_weights_skip_intercept_and_pre():
    weights = coefficient_contrast_weights(COEF_NAMES)
    assert list(weights.index) == list(CONTRASTS)
    assert (weights[["Intercept", "pre_z"]] == 0).all().all()
    assert weights.loc["instability-vs-stability"].tolist() == [0.0, 0.0, 0.5, 0.5]
    assert weights.loc["stable-variant-A-vs-B"].tolist() == [0.0, 0.0, -1.0, 1.0]


def test_summarize_draws_uses_percentiles():
    draws = np.random.default_rng(0).normal(1.0, 2.0, size=4000)
    summary = summarize_draws(draws)
    assert summary["estimate"] == pytest.approx(draws.mean())
    assert summary["lower"] == pytest.approx(np.percentile(draws, 2.5))
    assert summary["upper"] == pytest.approx(np.percentile(draws, 97.5))


def test_contrast_computed_per_draw(random_posterior):
    posterior, beta, u = random_posterior
    draws = outcome_contrast_draws(posterior)

    j = 1
    pooled_beta = beta.reshape(-1, len(COEF_NAMES))
    pooled_u = u[:, :, j, :].reshape(-1, len(COEF_NAMES))
    coefs = pooled_beta + pooled_u
    expected = coefs[:, 3] - coefs[:, 2]

    got = draws[
        (draws["outcome"] == OUTCOME_NAMES[j]) & (draws["contrast"] == "stable-variant-A-vs-B")
    ]["value"].to_numpy()
    np.testing.assert_allclose(got, expected)

    table = outcome_contrasts(posterior).set_index(["contrast", "outcome"])
    row = table.loc[("stable-variant-A-vs-B", OUTCOME_NAMES[j])]
    assert row["model"] == HIERARCHICAL
    assert row["lower"] == pytest.approx(np.percentile(expected, 2.5))
    assert row["upper"] == pytest.approx(np.percentile(expected, 97.5))
    assert row["estimate"] == pytest.approx(expected.mean())


def test_interval_is_not_built_from_component_summaries():
    # outcome deviation exactly offsets the fixed effect in every draw
    rng = np.random.default_rng(1)
    outcomes = OUTCOME_NAMES[:1]
    beta = rng.normal(0.0, 1.0, size=(2, 400, len(COEF_NAMES)))
    u = (0.5 - beta)[:, :, None, :]
    posterior = make_posterior(beta, u, outcomes)

    row = outcome_contrasts(posterior).set_index("contrast").loc["stable-variant-A-vs-B"]
    assert row["estimate"] == pytest.approx(0.0, abs=1e-12)
    assert row["upper"] - row["lower"] == pytest.approx(0.0, abs=1e-12)

    # adding separately summarized parts would give a wide interval
    fixed = summarize_draws(beta[..., 3] - beta[..., 2])
    assert fixed["upper"] - fixed["lower"] > 1.0


def test_population_contrasts_use_fixed_effects(random_posterior):
    posterior, beta, _ = random_posterior
    table = population_contrasts(posterior).set_index("contrast")
    pooled = beta.reshape(-1, len(COEF_NAMES))
    expected = 0.5 * pooled[:, 2] + 0.5 * pooled[:, 3]
    assert table.loc["instability-vs-stability", "estimate"] == pytest.approx(expected.mean())
    assert table.loc["instability-vs-stability", "lower"] == pytest.approx(np.percentile(expected, 2.5))


def test_build_model_structure(standardized):
    model = build_hierarchical_model(standardized)
    names = {rv.name for rv in model.free_RVs}
    assert {"beta", "chol_outcome", "z_outcome", "chol_participant", "z_participant", "sigma"} <= names
    assert {"u_outcome", "u_participant"} <= {d.name for d in model.deterministics}
    assert list(model.coords["outcome"]) == OUTCOME_NAMES
    assert len(model.coords["participant"]) == standardized["participant"].nunique()
    assert len(model.coords["obs"]) == len(standardized)
    assert list(model.coords["coef"]) == COEF_NAMES


def make_diagnostic_posterior(chain_offset, n_draws=2000, seed=5):
    """Posterior with the summarized variables; chain 1 shifted by ``chain_offset``."""
    rng = np.random.default_rng(seed)

    def block(*shape):
        values = rng.normal(size=(2, n_draws) + shape)
        values[1] += chain_offset
        return values

    n_coef = len(COEF_NAMES)
    return xr.Dataset(
        {
            "beta": (("chain", "draw", "coef"), block(n_coef)),
            "sigma": (("chain", "draw"), np.abs(block()) + 1.0),
            "chol_outcome_stds": (("chain", "draw", "coef"), np.abs(block(n_coef)) + 0.1),
            "chol_participant_stds": (("chain", "draw", "coef"), np.abs(block(n_coef)) + 0.1),
        },
        coords={"chain": [0, 1], "draw": np.arange(n_draws), "coef": COEF_NAMES},
    )


def test_diagnostics_cover_fixed_effects_and_deviation_sds():
    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always")
        summary = sampler_diagnostics(make_diagnostic_posterior(chain_offset=0.0))

    params = summary["parameter"].astype(str)
    for prefix in ("beta", "sigma", "chol_outcome_stds", "chol_participant_stds"):
        assert params.str.startswith(prefix).any(), prefix
    assert params.str.startswith("beta").sum() == len(COEF_NAMES)
    assert "r_hat" in summary.columns
    assert not any("r_hat" in str(w.message) for w in caught)


def test_diagnostics_warn_when_chains_disagree():
    with pytest.warns(UserWarning, match="r_hat"):
        summary = sampler_diagnostics(make_diagnostic_posterior(chain_offset=5.0))
    assert (summary["r_hat"] > 1.01).all()
