"""
Lightweight DAG engine driving the resource build stages.

Demonstrates:
- DAG construction and topological execution
- Context chaining (each stage sees the merged output of its upstream stages)
- Error containment (a failed stage skips everything downstream; the
  exception is kept on the node rather than re-raised)
- Per-stage observability (status and duration per node)

A DAG instance holds run state on its nodes, so build a fresh one per run.
"""

from __future__ import annotations

import logging
import time
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable

logger = logging.getLogger(__name__)

StageFn = Callable[[dict[str, Any]], dict[str, Any] | None]


class TaskStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    SUCCESS = "success"
    FAILED = "failed"
    SKIPPED = "skipped"


# Upstream states that block a task from running.
BLOCKING = (TaskStatus.FAILED, TaskStatus.SKIPPED)


@dataclass
class TaskNode:
    """A single stage inside a DAG."""

    name: str
    execute_fn: StageFn
    depends_on: list[str] = field(default_factory=list)
    status: TaskStatus = TaskStatus.PENDING
    result: dict[str, Any] = field(default_factory=dict)
    exception: BaseException | None = None
    duration_ms: float = 0.0

    def report(self) -> dict[str, Any]:
        entry: dict[str, Any] = {"status": self.status.value}
        if self.status in (TaskStatus.SUCCESS, TaskStatus.FAILED):
            entry["duration_ms"] = round(self.duration_ms, 2)
        if self.exception is not None:
            entry["error"] = f"{type(self.exception).__name__}: {self.exception}"
        return entry


@dataclass
class DagRun:
    """Outcome of one DAG run: the merged context plus per-task reports."""

    name: str
    context: dict[str, Any]
    tasks: dict[str, dict[str, Any]]
    failed: TaskNode | None = None

    @property
    def completed(self) -> bool:
        return self.failed is None and all(
            report["status"] == TaskStatus.SUCCESS.value for report in self.tasks.values()
        )


class DAG:
    """
    A directed acyclic graph of TaskNodes.

    Usage:
        dag = DAG("build_patient")
        dag.add_task("validate", validate_fn)
        dag.add_task("transform", transform_fn, depends_on=["validate"])
        run = dag.run(initial_context={"document": {...}})
    """

    def __init__(self, name: str):
        self.name = name
        self.tasks: dict[str, TaskNode] = {}

    def add_task(
        self,
        name: str,
        execute_fn: StageFn,
        depends_on: list[str] | None = None,
    ) -> DAG:
        if name in self.tasks:
            raise ValueError(f"Duplicate task name: {name}")
        self.tasks[name] = TaskNode(name=name, execute_fn=execute_fn, depends_on=list(depends_on or []))
        return self

    def _dependents(self) -> dict[str, list[str]]:
        dependents: dict[str, list[str]] = {name: [] for name in self.tasks}
        for task in self.tasks.values():
            for upstream in task.depends_on:
                if upstream not in self.tasks:
                    raise ValueError(f"Task '{task.name}' depends on unknown task '{upstream}'")
                dependents[upstream].append(task.name)
        return dependents

    def execution_order(self) -> list[str]:
        """Kahn's algorithm; ties keep insertion order."""
        dependents = self._dependents()
        pending = {name: len(task.depends_on) for name, task in self.tasks.items()}
        ready = deque(name for name, count in pending.items() if count == 0)
        order: list[str] = []

        while ready:
            name = ready.popleft()
            order.append(name)
            for child in dependents[name]:
                pending[child] -= 1
                if pending[child] == 0:
                    ready.append(child)

        if len(order) != len(self.tasks):
            stuck = sorted(name for name, count in pending.items() if count > 0)
            raise ValueError(f"Cycle detected in DAG '{self.name}': {', '.join(stuck)}")
        return order

    def _execute(self, task: TaskNode, context: dict[str, Any]) -> None:
        task.status = TaskStatus.RUNNING
        started = time.perf_counter()
        try:
            task.result = task.execute_fn(context) or {}
        except Exception as exc:
            task.status = TaskStatus.FAILED
            task.exception = exc
            logger.debug("Task '%s' in '%s' raised %r", task.name, self.name, exc)
        else:
            task.status = TaskStatus.SUCCESS
        finally:
            task.duration_ms = (time.perf_counter() - started) * 1000

    def run(self, initial_context: dict[str, Any] | None = None) -> DagRun:
        """
        Execute all tasks in topological order.

        Each task receives the initial context updated with the results of
        its upstream tasks. The returned ``DagRun.context`` merges the
        results of every task that succeeded.
        """
        order = self.execution_order()
        context = dict(initial_context or {})
        logger.debug("Running '%s': %s", self.name, " -> ".join(order))

        for name in order:
            task = self.tasks[name]
            upstream = [self.tasks[dep] for dep in task.depends_on]
            if any(dep.status in BLOCKING for dep in upstream):
                task.status = TaskStatus.SKIPPED
                continue
            for dep in upstream:
                context.update(dep.result)
            self._execute(task, context)

        for task in self.tasks.values():
            if task.status == TaskStatus.SUCCESS:
                context.update(task.result)

        run = DagRun(
            name=self.name,
            context=context,
            tasks={name: self.tasks[name].report() for name in order},
            failed=self.failed_task(),
        )
        logger.debug("'%s' %s", self.name, "completed" if run.completed else "failed")
        return run

    def failed_task(self) -> TaskNode | None:
        """The first task that raised during the last run, if any."""
        for task in self.tasks.values():
            if task.status == TaskStatus.FAILED:
                return task
        return None

    def to_dict(self) -> dict[str, Any]:
        """Serialize the DAG definition."""
        return {
            "name": self.name,
            "tasks": {name: {"depends_on": list(task.depends_on)} for name, task in self.tasks.items()},
        }
