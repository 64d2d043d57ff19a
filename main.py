"""
FILE: main.py
--------------
LangGraph orchestrators for the two Energystat reports.
Each report is a StateGraph of pure engine calls; every node reads
the table from state and writes a new table back.

Heating report (multiple linear regression):
  load
    ↓  date parsed, Weekday derived, decimal commas normalised
  coarse_clean
    ↓  zero-activity weekdays removed (+ optional IQR pass)
  regression
    ↓  fit → Cook's D >= c/n removed (c = 4 by default) → refit (refit is the reported model)
  post_fit_checks
    ↓
  final_report → END

Certificate report (PCA-reduced K-means):
  load
    ↓
  outlier_filter
    ↓  IQR pass over every numeric attribute (c = 5)
  reduce
    ↓  z-score, PCA, Kaiser criterion
  cluster
    ↓  Davies-Bouldin selection over k, assignment, profiles
  final_report → END

Any node that raises PipelineError records fatal_error in state and the
graph routes straight to END. Nothing is retried.
"""

import argparse
import functools
import logging
import sys
from pathlib import Path
from typing import Any, Callable, TypedDict

from langgraph.graph import END, StateGraph
from pydantic import ValidationError

from Schemas.config import CertificatePipelineConfig, HeatingPipelineConfig, load_config
from core.cluster_engine import assign_clusters, profile_clusters, select_cluster_count
from core.critic_engine import run_post_fit_checks
from core.exceptions import PipelineError
from core.final_report_engine import build_certificate_report, build_heating_report
from core.loader_engine import add_ratio_column, add_weekday_column, load_table
from core.outlier_engine import apply_mask, category_mask, iqr_outlier_mask
from core.reducer_engine import run_pca, standardize
from core.regression_engine import fit_with_influence_refit

logger = logging.getLogger("energystat")


# ─────────────────────────────────────────────
# STATE SCHEMAS
# TypedDict — all fields optional, populated as the pipeline progresses
# ─────────────────────────────────────────────

class HeatingState(TypedDict, total=False):
    # ── Inputs ──
    csv_path:        str
    config:          HeatingPipelineConfig

    # ── Working data ──
    table:           Any             # pd.DataFrame, replaced by every cleaning node
    final_model:     Any             # statsmodels results of the refit

    # ── Stage outputs ──
    loader_output:   Any
    cleaning_steps:  list
    regression:      dict
    critic_output:   Any
    report:          Any             # HeatingReportOutput

    fatal_error:     str | None


class CertificateState(TypedDict, total=False):
    # ── Inputs ──
    csv_path:          str
    config:            CertificatePipelineConfig

    # ── Working data ──
    table:             Any           # pd.DataFrame after outlier filtering
    scores:            Any           # pd.DataFrame of retained component scores
    labels:            Any           # pd.Series of cluster labels 1..k

    # ── Stage outputs ──
    loader_output:     Any
    cleaning_steps:    list
    degenerate_columns: list
    standardization:   Any
    pca:               Any
    cluster_selection: Any
    assignment:        Any
    cluster_profiles:  list
    report:            Any           # CertificateReportOutput

    fatal_error:       str | None


# ─────────────────────────────────────────────
# HELPERS
# ─────────────────────────────────────────────

def _stops_on_pipeline_error(node: Callable[[dict], dict]) -> Callable[[dict], dict]:
    """Turns a PipelineError raised by a node into fatal_error in state."""
    @functools.wraps(node)
    def wrapper(state: dict) -> dict:
        try:
            return node(state)
        except PipelineError as e:
            logger.error("%s failed: %s", node.__name__, e)
            return {**state, "fatal_error": str(e)}
    return wrapper


def _continue_or_end(next_node: str) -> Callable[[dict], str]:
    def route(state: dict) -> str:
        return END if state.get("fatal_error") else next_node
    return route


# ─────────────────────────────────────────────
# HEATING NODES
# ─────────────────────────────────────────────

@_stops_on_pipeline_error
def node_heating_load(state: HeatingState) -> HeatingState:
    """Loads the daily table and derives the weekday column."""
    cfg = state["config"]
    df, loader_output = load_table(
        state["csv_path"],
        required_columns=cfg.required_columns,
        numeric_columns=list(dict.fromkeys(cfg.numeric_columns + [cfg.response, *cfg.predictors])),
        date_column=cfg.date_column,
        separator=cfg.separator,
        dayfirst=cfg.dayfirst,
    )
    df = add_weekday_column(df, cfg.date_column, cfg.weekday_column)
    loader_output.derived_columns.append(cfg.weekday_column)
    return {**state, "table": df, "loader_output": loader_output}


@_stops_on_pipeline_error
def node_heating_coarse_clean(state: HeatingState) -> HeatingState:
    """Removes zero-activity days, then optionally applies the IQR pass."""
    cfg = state["config"]
    df = state["table"]
    steps = []

    if cfg.excluded_weekdays:
        df, step = apply_mask(df, category_mask(df, cfg.weekday_column, cfg.excluded_weekdays))
        steps.append(step)

    if cfg.iqr_columns:
        df, step = apply_mask(df, iqr_outlier_mask(df, cfg.iqr_columns, cfg.iqr_multiplier))
        steps.append(step)

    return {**state, "table": df, "cleaning_steps": steps}


@_stops_on_pipeline_error
def node_heating_regression(state: HeatingState) -> HeatingState:
    """Fit, influence filter, refit."""
    cfg = state["config"]
    refit = fit_with_influence_refit(
        state["table"], cfg.response, cfg.predictors, cooks_numerator=cfg.cooks_numerator,
    )
    return {
        **state,
        "table":       refit["final_df"],
        "final_model": refit["final_model"],
        "regression":  refit,
    }


@_stops_on_pipeline_error
def node_heating_post_fit_checks(state: HeatingState) -> HeatingState:
    critic_output = run_post_fit_checks(
        state["final_model"], cooks_numerator=state["config"].cooks_numerator,
    )
    return {**state, "critic_output": critic_output}


@_stops_on_pipeline_error
def node_heating_final_report(state: HeatingState) -> HeatingState:
    refit = state["regression"]
    report = build_heating_report(
        title=state["config"].title,
        loader_output=state["loader_output"],
        cleaning_steps=state.get("cleaning_steps", []),
        initial_fit=refit["initial_result"],
        cooks_mask=refit["cooks_mask"],
        cooks_filter=refit["cooks_filter"],
        final_fit=refit["final_result"],
        post_fit_checks=state["critic_output"],
    )
    return {**state, "report": report}


# ─────────────────────────────────────────────
# CERTIFICATE NODES
# ─────────────────────────────────────────────

@_stops_on_pipeline_error
def node_certificate_load(state: CertificateState) -> CertificateState:
    cfg = state["config"]
    df, loader_output = load_table(
        state["csv_path"],
        required_columns=cfg.id_columns + cfg.categorical_columns,
        numeric_columns=cfg.numeric_columns,
        separator=cfg.separator,
    )
    for ratio in cfg.ratio_columns:
        df = add_ratio_column(df, ratio.name, ratio.numerator, ratio.denominator)
        loader_output.derived_columns.append(ratio.name)
    return {**state, "table": df, "loader_output": loader_output}


def _certificate_numeric_columns(state: CertificateState) -> list[str]:
    cfg = state["config"]
    exclude = set(cfg.id_columns + cfg.categorical_columns)
    numeric = state["loader_output"].numeric_columns + state["loader_output"].derived_columns
    return [c for c in dict.fromkeys(numeric) if c not in exclude]


@_stops_on_pipeline_error
def node_certificate_outlier_filter(state: CertificateState) -> CertificateState:
    cfg = state["config"]
    df = state["table"]
    mask = iqr_outlier_mask(df, _certificate_numeric_columns(state), cfg.iqr_multiplier)
    df, step = apply_mask(df, mask)
    return {
        **state,
        "table": df,
        "cleaning_steps": [step],
        "degenerate_columns": mask.degenerate_columns,
    }


@_stops_on_pipeline_error
def node_certificate_reduce(state: CertificateState) -> CertificateState:
    cfg = state["config"]
    z_df, standardization = standardize(state["table"], exclude=cfg.reduction_exclusions)
    pca_result, scores, _ = run_pca(z_df, kaiser_threshold=cfg.kaiser_threshold)
    return {**state, "standardization": standardization, "pca": pca_result, "scores": scores}


@_stops_on_pipeline_error
def node_certificate_cluster(state: CertificateState) -> CertificateState:
    cfg = state["config"]
    scores = state["scores"]
    selection, model = select_cluster_count(
        scores, k_min=cfg.k_min, k_max=cfg.k_max, n_init=cfg.n_init, random_state=cfg.random_state,
    )
    assignment, labels = assign_clusters(scores, model, min_share=cfg.small_cluster_share)
    profiles = profile_clusters(
        state["table"],
        labels,
        state["standardization"].columns_used,
        excluded_clusters=assignment.near_noise_clusters,
    )
    return {
        **state,
        "cluster_selection": selection,
        "assignment":        assignment,
        "labels":            labels,
        "cluster_profiles":  profiles,
    }


@_stops_on_pipeline_error
def node_certificate_final_report(state: CertificateState) -> CertificateState:
    report = build_certificate_report(
        title=state["config"].title,
        loader_output=state["loader_output"],
        cleaning_steps=state.get("cleaning_steps", []),
        degenerate_columns=state.get("degenerate_columns", []),
        standardization=state["standardization"],
        pca=state["pca"],
        cluster_selection=state["cluster_selection"],
        assignment=state["assignment"],
        cluster_profiles=state["cluster_profiles"],
    )
    return {**state, "report": report}


# ─────────────────────────────────────────────
# GRAPH CONSTRUCTION
# ─────────────────────────────────────────────

def _build_linear_graph(state_schema: type, nodes: list[tuple[str, Callable]]):
    builder = StateGraph(state_schema)
    for name, fn in nodes:
        builder.add_node(name, fn)

    builder.set_entry_point(nodes[0][0])
    for (name, _), (next_name, _) in zip(nodes, nodes[1:]):
        builder.add_conditional_edges(name, _continue_or_end(next_name))
    builder.add_edge(nodes[-1][0], END)
    return builder.compile()


def build_heating_graph():
    """Builds and compiles the heating regression pipeline."""
    return _build_linear_graph(HeatingState, [
        ("load",            node_heating_load),
        ("coarse_clean",    node_heating_coarse_clean),
        ("regression",      node_heating_regression),
        ("post_fit_checks", node_heating_post_fit_checks),
        ("final_report",    node_heating_final_report),
    ])


def build_certificate_graph():
    """Builds and compiles the certificate clustering pipeline."""
    return _build_linear_graph(CertificateState, [
        ("load",           node_certificate_load),
        ("outlier_filter", node_certificate_outlier_filter),
        ("reduce",         node_certificate_reduce),
        ("cluster",        node_certificate_cluster),
        ("final_report",   node_certificate_final_report),
    ])


# Module-level compiled graphs — reused across invocations
heating_graph = build_heating_graph()
certificate_graph = build_certificate_graph()

GRAPHS = {
    "heating":      heating_graph,
    "certificates": certificate_graph,
}


# ─────────────────────────────────────────────
# PUBLIC ENTRY POINTS
# ─────────────────────────────────────────────

def run_heating_report(
    csv_path: str,
    config: HeatingPipelineConfig | None = None,
) -> dict[str, Any]:
    """
    Runs the heating regression pipeline on one file.

    Returns the final state. Key fields:
      - report:      HeatingReportOutput (absent if the run stopped)
      - fatal_error: set if the pipeline stopped early
    """
    initial_state: HeatingState = {
        "csv_path":    str(csv_path),
        "config":      config or load_config("heating"),
        "fatal_error": None,
    }
    return heating_graph.invoke(initial_state)


def run_certificate_report(
    csv_path: str,
    config: CertificatePipelineConfig | None = None,
) -> dict[str, Any]:
    """
    Runs the certificate clustering pipeline on one file.
    Pass config.random_state for reproducible cluster assignments.
    """
    initial_state: CertificateState = {
        "csv_path":    str(csv_path),
        "config":      config or load_config("certificates"),
        "fatal_error": None,
    }
    return certificate_graph.invoke(initial_state)


RUNNERS = {
    "heating":      run_heating_report,
    "certificates": run_certificate_report,
}


# ─────────────────────────────────────────────
# CLI RUNNER
# Usage: python main.py heating data.csv --output report.json
#        python main.py certificates epc.csv --seed 42
#        python main.py graph heating
# ─────────────────────────────────────────────

def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="energystat", description="Building energy statistical reports")
    parser.add_argument("--log-level", default="INFO", help="Logging level (default: INFO)")
    sub = parser.add_subparsers(dest="command", required=True)

    for report in RUNNERS:
        p = sub.add_parser(report, help=f"Run the {report} report on a CSV file")
        p.add_argument("csv_path", help="Input CSV file")
        p.add_argument("--config", help="JSON file overriding the report defaults")
        p.add_argument("--output", help="Write the full report as JSON to this path")
        if report == "certificates":
            p.add_argument("--seed", type=int, help="Random seed for K-means restarts")

    g = sub.add_parser("graph", help="Print the Mermaid diagram of a pipeline graph")
    g.add_argument("report", choices=sorted(GRAPHS))
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command == "graph":
        print(GRAPHS[args.report].get_graph().draw_mermaid())
        return 0

    overrides = {"random_state": getattr(args, "seed", None)}
    try:
        config = load_config(args.command, args.config, **overrides)
    except ValidationError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return 2
    state = RUNNERS[args.command](args.csv_path, config)

    if state.get("fatal_error"):
        print(f"Stopped: {state['fatal_error']}", file=sys.stderr)
        return 1

    report = state["report"]
    print(report.markdown_report)
    if args.output:
        Path(args.output).write_text(report.model_dump_json(indent=2), encoding="utf-8")
        logger.info("Report saved to: %s", args.output)
    return 0


if __name__ == "__main__":
    sys.exit(main())
