import json

import pytest

from Schemas.loader import LoaderOutput
from core.cluster_engine import assign_clusters, profile_clusters, select_cluster_count
from core.critic_engine import run_post_fit_checks
from core.final_report_engine import build_certificate_report, build_heating_report
from core.reducer_engine import run_pca, standardize
from core.regression_engine import fit_with_influence_refit
from tests.conftest import make_certificate_frame


def loader_output_for(df, warnings=None):
    return LoaderOutput(
        source_path="memory.csv",
        separator=",",
        original_shape=df.shape,
        final_shape=df.shape,
        numeric_columns=list(df.select_dtypes(include="number").columns),
        warnings=warnings or [],
    )


@pytest.fixture
def heating_report(linear_frame):
    df = linear_frame.copy()
    df.loc[0, "y"] += 25.0
    refit = fit_with_influence_refit(df, "y", ["x1", "x2"])
    return build_heating_report(
        title="",
        loader_output=loader_output_for(df, warnings=["1 value in 'x1' was unparseable"]),
        cleaning_steps=[],
        initial_fit=refit["initial_result"],
        cooks_mask=refit["cooks_mask"],
        cooks_filter=refit["cooks_filter"],
        final_fit=refit["final_result"],
        post_fit_checks=run_post_fit_checks(refit["final_model"]),
    )


@pytest.fixture
def certificate_report():
    df = make_certificate_frame(n_per_group=60)
    z, standardization = standardize(df)
    pca, scores, _ = run_pca(z)
    selection, model = select_cluster_count(scores, k_min=2, k_max=5, n_init=5, random_state=0)
    assignment, labels = assign_clusters(scores, model)
    profiles = profile_clusters(df, labels, standardization.columns_used, assignment.near_noise_clusters)
    return build_certificate_report(
        title="Certificates",
        loader_output=loader_output_for(df),
        cleaning_steps=[],
        degenerate_columns=["Flat"],
        standardization=standardization,
        pca=pca,
        cluster_selection=selection,
        assignment=assignment,
        cluster_profiles=profiles,
    )


class TestHeatingReport:

    def test_reports_the_refit(self, heating_report):
        assert heating_report.final_fit.n_observations == (
            heating_report.initial_fit.n_observations - heating_report.cooks_filter.n_flagged
        )
        assert f"{heating_report.final_fit.r_squared:.4f}" in heating_report.key_statistic

    def test_markdown_sections(self, heating_report):
        md = heating_report.markdown_report
        assert md.startswith("# Regression Report")
        for section in ("## Dataset & Preparation", "## Influence Filter", "## Post-Fit Model Checks"):
            assert section in md
        assert "| x1 |" in md

    def test_loader_warnings_become_caveats(self, heating_report):
        assert any("unparseable" in c for c in heating_report.caveats)

    def test_serialises_to_json(self, heating_report):
        payload = json.loads(heating_report.model_dump_json())
        assert payload["final_fit"]["response"] == "y"
        assert payload["cooks_filter"]["strategy"] == "cooks_distance"


class TestCertificateReport:

    def test_markdown_sections(self, certificate_report):
        md = certificate_report.markdown_report
        assert md.startswith("# Certificates")
        for section in ("## Principal Components", "## Cluster Selection", "## Clusters"):
            assert section in md
        assert "## Cluster Profiles" in md

    def test_key_statistic_names_selected_k(self, certificate_report):
        k = certificate_report.cluster_selection.selected_k
        assert f"k = {k}" in certificate_report.key_statistic

    def test_degenerate_columns_become_caveats(self, certificate_report):
        assert any("Flat" in c for c in certificate_report.caveats)

    def test_serialises_to_json(self, certificate_report):
        payload = json.loads(certificate_report.model_dump_json())
        assert len(payload["assignment"]["labels"]) == certificate_report.assignment.n_observations
        assert payload["pca"]["n_components_selected"] == certificate_report.pca.n_components_selected
