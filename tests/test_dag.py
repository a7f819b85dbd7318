"""Tests for the DAG engine that drives the build stages."""

import pytest

from fhir_utilities.etl.dag import DAG, TaskStatus


def _chain(*names):
    """A linear DAG where each task records its own name."""
    visited = []
    dag = DAG("chain")
    previous = None
    for name in names:
        dag.add_task(
            name,
            lambda ctx, name=name: visited.append(name) or {f"seen_{name}": True},
            depends_on=[previous] if previous else None,
        )
        previous = name
    return dag, visited


def test_linear_dag_executes_in_order():
    """Tasks run in dependency order."""
    dag, visited = _chain("validate", "transform", "finalize")
    run = dag.run()

    assert run.completed
    assert visited == ["validate", "transform", "finalize"]
    assert list(run.tasks) == visited


def test_upstream_results_reach_downstream_tasks():
    def transform(ctx):
        return {"resource": {"status": ctx["validated"]["status"].upper()}}

    dag = DAG("context")
    dag.add_task("validate", lambda ctx: {"validated": ctx["document"]})
    dag.add_task("transform", transform, depends_on=["validate"])

    run = dag.run({"document": {"status": "active"}})
    assert run.context["resource"] == {"status": "ACTIVE"}
    assert run.context["document"] == {"status": "active"}


def test_initial_context_is_not_mutated():
    seed = {"document": {}}
    dag = DAG("copy")
    dag.add_task("a", lambda ctx: {"added": 1})
    dag.run(seed)
    assert seed == {"document": {}}


def test_failed_task_skips_the_rest_of_the_chain():
    """A failure skips its dependents, and skipped tasks block theirs."""
    dag = DAG("failure")
    dag.add_task("validate", lambda ctx: 1 / 0)
    dag.add_task("transform", lambda ctx: pytest.fail("transform ran"), depends_on=["validate"])
    dag.add_task("finalize", lambda ctx: pytest.fail("finalize ran"), depends_on=["transform"])

    run = dag.run()
    assert not run.completed
    assert dag.tasks["validate"].status == TaskStatus.FAILED
    assert dag.tasks["transform"].status == TaskStatus.SKIPPED
    assert dag.tasks["finalize"].status == TaskStatus.SKIPPED
    assert run.tasks["transform"] == {"status": "skipped"}


def test_failed_task_keeps_exception():
    """The raised exception is kept on the node for the caller to classify."""
    error = KeyError("missing")

    def boom(ctx):
        raise error

    dag = DAG("exception")
    dag.add_task("boom", boom)

    run = dag.run()
    assert run.failed is dag.tasks["boom"]
    assert run.failed.exception is error
    assert run.tasks["boom"]["error"] == "KeyError: 'missing'"


def test_no_failed_task_after_success():
    dag = DAG("ok")
    dag.add_task("a", lambda ctx: None)
    run = dag.run()
    assert run.failed is None
    assert dag.failed_task() is None
    assert dag.tasks["a"].result == {}


def test_cycle_detection():
    """DAG rejects circular dependencies."""
    dag = DAG("test_cycle")
    dag.add_task("a", lambda ctx: None, depends_on=["b"])
    dag.add_task("b", lambda ctx: None, depends_on=["a"])

    with pytest.raises(ValueError, match="Cycle detected in DAG 'test_cycle': a, b"):
        dag.run()


def test_unknown_dependency_rejected():
    dag = DAG("unknown")
    dag.add_task("a", lambda ctx: None, depends_on=["ghost"])

    with pytest.raises(ValueError, match="unknown task 'ghost'"):
        dag.execution_order()


def test_duplicate_task_rejected():
    dag = DAG("dupes")
    dag.add_task("a", lambda ctx: None)
    with pytest.raises(ValueError, match="Duplicate task name"):
        dag.add_task("a", lambda ctx: None)


def test_diamond_dag():
    """Diamond shape: A -> B, A -> C, B+C -> D."""
    dag = DAG("diamond")
    dag.add_task("a", lambda ctx: {"val": 1})
    dag.add_task("b", lambda ctx: {"b_val": ctx["val"] + 10}, depends_on=["a"])
    dag.add_task("c", lambda ctx: {"c_val": ctx["val"] + 20}, depends_on=["a"])
    dag.add_task(
        "d",
        lambda ctx: {"total": ctx["b_val"] + ctx["c_val"]},
        depends_on=["b", "c"],
    )

    assert dag.execution_order() == ["a", "b", "c", "d"]
    run = dag.run()
    assert run.completed
    assert run.context["total"] == 32


def test_to_dict_serialization():
    """DAG can serialize its structure."""
    dag, _ = _chain("x", "y")

    definition = dag.to_dict()
    assert definition["name"] == "chain"
    assert definition["tasks"]["x"]["depends_on"] == []
    assert definition["tasks"]["y"]["depends_on"] == ["x"]
