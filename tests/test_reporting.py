import numpy as np
import pandas as pd
import pytest

from pooling_report import run
from pooling_report.preprocessing import HIERARCHICAL, OUTCOME_NAMES, SINGLE_LEVEL
from pooling_report.figures import plot_contrast_comparison, save_contrast_figures
from pooling_report.reporting import build_narrative, combine_contrast_tables, shrinkage_summary
from pooling_report.single_level import run_single_level


@pytest.fixture
def single(standardized):
    contrasts, _ = run_single_level(standardized, verbose=False)
    return contrasts


@pytest.fixture
def hierarchical(single):
    # stand-in for posterior summaries: pulled halfway to the mean
    hier = single.drop(columns=["se"]).copy()
    for contrast, idx in hier.groupby("contrast").groups.items():
        center = hier.loc[idx, "estimate"].mean()
        for col in ("estimate", "lower", "upper"):
            hier.loc[idx, col] = center + 0.5 * (hier.loc[idx, col] - center)
    hier["model"] = HIERARCHICAL
    return hier


@pytest.fixture
def population(hierarchical):
    return (
        hierarchical.groupby("contrast", as_index=False)[["estimate", "lower", "upper"]]
        .mean()
        .assign(model=HIERARCHICAL)
    )


def test_combine_tags_both_models(single, hierarchical):
    combined = combine_contrast_tables(single, hierarchical)
    assert len(combined) == len(single) + len(hierarchical)
    assert set(combined["model"]) == {SINGLE_LEVEL, HIERARCHICAL}
    first = combined[combined["contrast"] == combined["contrast"].iloc[0]]
    assert first["outcome"].iloc[0] == OUTCOME_NAMES[0]
    assert first["model"].iloc[:2].tolist() == [SINGLE_LEVEL, HIERARCHICAL]


def test_combine_without_hierarchical(single):
    combined = combine_contrast_tables(single)
    assert set(combined["model"]) == {SINGLE_LEVEL}
    assert len(combined) == len(single)


def test_shrinkage_ratio(single, hierarchical):
    summary = shrinkage_summary(combine_contrast_tables(single, hierarchical))
    assert len(summary) == 2
    np.testing.assert_allclose(summary["variance_ratio"], 0.25)


def test_narrative_mentions_each_contrast(paired, single, hierarchical, population):
    participants = paired.drop_duplicates("participant")
    combined = combine_contrast_tables(single, hierarchical)
    text = build_narrative(participants, combined, population, shrinkage_summary(combined))
    assert "instability-vs-stability" in text
    assert "stable-variant-A-vs-B" in text
    assert "Population-average hierarchical estimate" in text
    assert "narrower" in text
    assert f"{len(participants)} participants" in text


def test_plot_draws_reference_lines(single, hierarchical, population):
    combined = combine_contrast_tables(single, hierarchical)
    ax = plot_contrast_comparison(combined, population, "instability-vs-stability")
    ys = sorted(round(line.get_ydata()[0], 6) for line in ax.get_lines() if len(line.get_ydata()) == 2)
    pop = population.set_index("contrast").loc["instability-vs-stability", "estimate"]
    assert 0.0 in ys
    assert round(pop, 6) in ys
    assert len(ax.get_xticklabels()) == len(OUTCOME_NAMES)


def test_save_figures(tmp_path, single, hierarchical, population):
    combined = combine_contrast_tables(single, hierarchical)
    paths = save_contrast_figures(combined, population, output_dir=tmp_path, verbose=False)
    assert len(paths) == 4
    assert all(p.exists() for p in paths)


def test_run_single_level_report(tmp_path, workbook_path):
    results = run(
        data_path=workbook_path,
        sheet_name="Data",
        output_dir=tmp_path / "out",
        skip_hierarchical=True,
        verbose=False,
    )
    out = tmp_path / "out"
    for name in (
        "single_level_contrasts.csv",
        "single_level_emmeans.csv",
        "standardization_parameters.csv",
        "descriptives_by_group.csv",
        "contrast_comparison.csv",
        "report.md",
    ):
        assert (out / name).exists(), name
    assert "hierarchical" not in results
    table = pd.read_csv(out / "single_level_contrasts.csv")
    assert set(table["outcome"]) == set(OUTCOME_NAMES)


def test_run_warns_when_pre_scores_are_not_standardized(tmp_path, wide_trial):
    wide_trial["pre_TMTA"] = 30.0
    path = tmp_path / "flat.xlsx"
    wide_trial.to_excel(path, sheet_name="Data", index=False)

    with pytest.warns(UserWarning) as record:
        run(
            data_path=path,
            sheet_name="Data",
            output_dir=tmp_path / "out",
            skip_hierarchical=True,
            verbose=False,
        )
    messages = [str(w.message) for w in record]
    assert any("TMTA: constant" in m for m in messages)
    assert any("deviate from mean 0" in m for m in messages)
