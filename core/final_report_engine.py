"""
FILE: core/final_report_engine.py
----------------------------------
Pure logic for assembling the finished reports from pipeline outputs.

Responsibilities:
  1. Collects outputs from every stage of a pipeline
  2. Assembles structured report sections
  3. Builds caveats from loader warnings, degenerate columns, post-fit
     failures and near-noise clusters
  4. Generates a markdown string for terminal display
"""

from Schemas.clustering import ClusterAssignmentOutput, ClusterProfile, ClusterSelectionResult
from Schemas.diagnostics import DiagnosticStatus, ModelCriticOutput
from Schemas.final_report import CertificateReportOutput, HeatingReportOutput
from Schemas.loader import LoaderOutput
from Schemas.outliers import OutlierFilterOutput, OutlierMask
from Schemas.reducer import DimensionalityResult, StandardizationOutput
from Schemas.regression import RegressionResult


# ─────────────────────────────────────────────
# HELPERS
# ─────────────────────────────────────────────

def _build_dataset_summary(
    loader_output: LoaderOutput,
    cleaning_steps: list[OutlierFilterOutput],
    n_final: int,
) -> str:
    n_rows, n_cols = loader_output.original_shape
    summary = f"Dataset: {n_rows} rows × {n_cols} columns."
    if loader_output.rows_dropped_total:
        summary += f" {loader_output.rows_dropped_total} incomplete row(s) dropped on load."
    for step in cleaning_steps:
        summary += f" {step.summary}"
    summary += f" {n_final} row(s) used for the final model."
    return summary


def _loader_caveats(loader_output: LoaderOutput) -> list[str]:
    return [f"Data note: {w}" for w in loader_output.warnings]


def _format_coefficients(result: RegressionResult) -> list[str]:
    lines = [
        "| Term | Estimate | Std. error | t | p | 95% CI |",
        "|---|---|---|---|---|---|",
    ]
    for c in result.coefficients:
        lines.append(
            f"| {c.variable} | {c.estimate:.4f} | {c.std_error:.4f} | "
            f"{c.t_statistic:.3f} | {c.p_value:.4g} | [{c.ci_lower:.4f}, {c.ci_upper:.4f}] |"
        )
    return lines


# ─────────────────────────────────────────────
# HEATING REPORT
# ─────────────────────────────────────────────

def _build_heating_markdown(report: HeatingReportOutput) -> str:
    fit = report.final_fit
    lines = [f"# {report.title}", ""]

    lines.append("## Dataset & Preparation")
    lines.append(report.dataset_summary)
    lines.append("")

    lines.append("## Influence Filter")
    lines.append(
        f"Initial fit on {report.initial_fit.n_observations} rows "
        f"(R² = {report.initial_fit.r_squared:.4f}). "
        f"Cook's distance threshold {report.cooks_numerator:g}/n = {report.cooks_threshold:.4f}: "
        f"{report.cooks_filter.n_flagged} observation(s) removed before the refit."
    )
    lines.append("")

    lines.append(f"## Results — {fit.response} ~ {' + '.join(fit.predictors)}")
    lines.append(f"**{report.key_statistic}**")
    lines.append("")
    lines.extend(_format_coefficients(fit))
    lines.append("")
    lines.append(fit.interpretation)
    lines.append("")

    lines.append("## Post-Fit Model Checks")
    lines.append(report.post_fit_checks.summary_message)
    lines.append("")

    if report.caveats:
        lines.append("## Caveats")
        for c in report.caveats:
            lines.append(f"- {c}")
        lines.append("")

    return "\n".join(lines)


def build_heating_report(
    title: str,
    loader_output: LoaderOutput,
    cleaning_steps: list[OutlierFilterOutput],
    initial_fit: RegressionResult,
    cooks_mask: OutlierMask,
    cooks_filter: OutlierFilterOutput,
    final_fit: RegressionResult,
    post_fit_checks: ModelCriticOutput,
) -> HeatingReportOutput:
    """Assembles the regression report. Only final_fit is presented as the result."""
    steps = list(cleaning_steps) + [cooks_filter]

    caveats = _loader_caveats(loader_output)
    for r in post_fit_checks.results:
        if r.status == DiagnosticStatus.FAILED:
            caveats.append(f"Post-fit check '{r.name}' failed: {r.plain_reason}")

    report = HeatingReportOutput(
        title=title or f"Regression Report — {final_fit.response}",
        loader_output=loader_output,
        cleaning_steps=list(cleaning_steps),
        initial_fit=initial_fit,
        cooks_filter=cooks_filter,
        cooks_numerator=cooks_mask.numerator,
        cooks_threshold=cooks_mask.threshold,
        final_fit=final_fit,
        post_fit_checks=post_fit_checks,
        dataset_summary=_build_dataset_summary(loader_output, steps, final_fit.n_observations),
        key_statistic=(
            f"R² = {final_fit.r_squared:.4f}, Adj. R² = {final_fit.adj_r_squared:.4f}, "
            f"F = {final_fit.f_statistic:.4f}, p = {final_fit.f_p_value:.4g}"
        ),
        caveats=caveats,
    )
    report.markdown_report = _build_heating_markdown(report)
    return report


# ─────────────────────────────────────────────
# CERTIFICATE REPORT
# ─────────────────────────────────────────────

def _build_certificate_markdown(report: CertificateReportOutput) -> str:
    pca = report.pca
    selection = report.cluster_selection
    lines = [f"# {report.title}", ""]

    lines.append("## Dataset & Preparation")
    lines.append(report.dataset_summary)
    lines.append("")

    lines.append("## Principal Components")
    lines.append(pca.interpretation)
    lines.append("")
    lines.append("| Component | Eigenvalue | Variance % | Cumulative % | Retained |")
    lines.append("|---|---|---|---|---|")
    for c in pca.components:
        lines.append(
            f"| PC{c.component_number} | {c.eigenvalue:.4f} | {c.explained_variance_pct:.2f} | "
            f"{c.cumulative_variance_pct:.2f} | {'yes' if c.retained else 'no'} |"
        )
    lines.append("")

    lines.append("## Cluster Selection")
    lines.append(selection.interpretation)
    lines.append("")
    lines.append("| k | Davies-Bouldin | Inertia |")
    lines.append("|---|---|---|")
    for t in selection.trials:
        lines.append(f"| {t.k} | {t.davies_bouldin:.4f} | {t.inertia:.2f} |")
    lines.append("")

    lines.append("## Clusters")
    lines.append("| Cluster | Size | Share % | Near-noise |")
    lines.append("|---|---|---|---|")
    for c in report.assignment.clusters:
        lines.append(
            f"| {c.label} | {c.size} | {c.relative_size * 100:.2f} | {'yes' if c.near_noise else 'no'} |"
        )
    lines.append("")

    if report.cluster_profiles:
        columns = list(report.cluster_profiles[0].means)
        lines.append("## Cluster Profiles (attribute means)")
        lines.append("| Cluster | " + " | ".join(columns) + " |")
        lines.append("|---|" + "---|" * len(columns))
        for p in report.cluster_profiles:
            lines.append(f"| {p.label} | " + " | ".join(f"{p.means[c]:.3f}" for c in columns) + " |")
        lines.append("")

    if report.caveats:
        lines.append("## Caveats")
        for c in report.caveats:
            lines.append(f"- {c}")
        lines.append("")

    return "\n".join(lines)


def build_certificate_report(
    title: str,
    loader_output: LoaderOutput,
    cleaning_steps: list[OutlierFilterOutput],
    degenerate_columns: list[str],
    standardization: StandardizationOutput,
    pca: DimensionalityResult,
    cluster_selection: ClusterSelectionResult,
    assignment: ClusterAssignmentOutput,
    cluster_profiles: list[ClusterProfile],
) -> CertificateReportOutput:
    """Assembles the clustering report."""
    caveats = _loader_caveats(loader_output)
    if degenerate_columns:
        caveats.append(
            f"Column(s) {degenerate_columns} have zero interquartile range and were "
            f"excluded from the outlier filter."
        )
    if standardization.zero_variance_columns:
        caveats.append(
            f"Column(s) {standardization.zero_variance_columns} have zero variance and were "
            f"excluded from the principal component analysis."
        )
    if assignment.near_noise_clusters:
        caveats.append(
            f"Cluster(s) {assignment.near_noise_clusters} hold less than "
            f"{assignment.min_share * 100:.1f}% of records; they keep their labels but are "
            f"left out of the cluster profiles."
        )

    report = CertificateReportOutput(
        title=title or "Clustering Report",
        loader_output=loader_output,
        cleaning_steps=list(cleaning_steps),
        degenerate_columns=list(degenerate_columns),
        standardization=standardization,
        pca=pca,
        cluster_selection=cluster_selection,
        assignment=assignment,
        cluster_profiles=cluster_profiles,
        dataset_summary=_build_dataset_summary(loader_output, cleaning_steps, assignment.n_observations),
        key_statistic=(
            f"{pca.n_components_selected} component(s) explain {pca.total_variance_explained:.2f}% "
            f"of variance; k = {cluster_selection.selected_k} "
            f"(Davies-Bouldin = {cluster_selection.selected_index:.4f})"
        ),
        caveats=caveats,
    )
    report.markdown_report = _build_certificate_markdown(report)
    return report
